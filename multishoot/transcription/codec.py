"""Decision vector layout for direct multiple shooting.

The flat NLP variable is laid out as

    w = [x_1, ..., x_N,  u_0, ..., u_{N-1},  (tf)]

with each node state x_i (n entries) and interval control u_i (m entries)
stored contiguously. The initial state x_0 is a fixed parameter and never
appears in w.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np
from numpy.typing import NDArray

from multishoot.core.problem import FinalTime
from multishoot.core.exceptions import ConfigurationError, DimensionError


@dataclass(frozen=True)
class DecodedGuess:
    """Decision vector split into its grids."""

    states: NDArray      # (N+1, n), row 0 = x0
    controls: NDArray    # (N, m)
    final_time: float

    @property
    def N(self) -> int:
        """Number of shooting intervals."""
        return self.controls.shape[0]

    @property
    def time_grid(self) -> NDArray:
        """Shooting node times t_i = i tf / N."""
        return np.linspace(0.0, self.final_time, self.N + 1)


@dataclass(frozen=True)
class DecisionLayout:
    """Sizes and offsets of the blocks inside the decision vector."""

    state_dim: int
    control_dim: int
    num_intervals: int
    final_time: FinalTime

    def __post_init__(self) -> None:
        if self.state_dim < 1 or self.control_dim < 1 or self.num_intervals < 1:
            raise ConfigurationError(
                "State dimension, control dimension and interval count must be positive",
                context=f"n={self.state_dim}, m={self.control_dim}, N={self.num_intervals}",
            )

    @property
    def free_final_time(self) -> bool:
        return self.final_time.is_free

    @property
    def num_state_entries(self) -> int:
        return self.state_dim * self.num_intervals

    @property
    def num_control_entries(self) -> int:
        return self.control_dim * self.num_intervals

    @property
    def size(self) -> int:
        """Length of the decision vector."""
        return self.num_state_entries + self.num_control_entries + int(self.free_final_time)

    def decode(self, w: NDArray, x0: NDArray) -> DecodedGuess:
        """Split w into state grid, control grid and final time."""
        w = np.asarray(w, dtype=float).ravel()
        x0 = np.atleast_1d(np.asarray(x0, dtype=float)).ravel()
        n, m, N = self.state_dim, self.control_dim, self.num_intervals

        if w.shape[0] != self.size:
            raise DimensionError(
                f"Decision vector has length {w.shape[0]}, expected {self.size}",
                context=f"n={n}, m={m}, N={N}, free_tf={self.free_final_time}",
            )
        if x0.shape[0] != n:
            raise DimensionError(
                f"Initial state has length {x0.shape[0]}, expected {n}"
            )

        ns, nc = self.num_state_entries, self.num_control_entries
        states = np.vstack([x0[None, :], w[:ns].reshape(N, n)])
        controls = w[ns:ns + nc].reshape(N, m)

        if self.free_final_time:
            tf = float(w[-1])
        else:
            tf = float(self.final_time.value)

        return DecodedGuess(states=states, controls=controls, final_time=tf)

    def encode(
        self,
        states: NDArray,
        controls: NDArray,
        final_time: Optional[float] = None,
    ) -> NDArray:
        """
        Inverse of decode.

        Args:
            states: Node states (N+1, n); row 0 is dropped
            controls: Interval controls (N, m)
            final_time: Required when the final time is free, ignored otherwise
        """
        n, m, N = self.state_dim, self.control_dim, self.num_intervals
        states = np.asarray(states, dtype=float)
        controls = np.asarray(controls, dtype=float)

        if states.shape != (N + 1, n):
            raise DimensionError(
                f"State grid has shape {states.shape}, expected {(N + 1, n)}"
            )
        if controls.shape != (N, m):
            raise DimensionError(
                f"Control grid has shape {controls.shape}, expected {(N, m)}"
            )

        blocks = [states[1:].ravel(), controls.ravel()]
        if self.free_final_time:
            if final_time is None:
                raise DimensionError("Free final time requires a value to encode")
            blocks.append(np.array([float(final_time)]))

        return np.concatenate(blocks)

    def initial_guess(self) -> NDArray:
        """All ones over states and controls, tf guess in the last slot."""
        w0 = np.ones(self.num_state_entries + self.num_control_entries)
        if self.free_final_time:
            w0 = np.append(w0, self.final_time.guess)
        return w0

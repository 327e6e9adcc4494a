"""Tests for the decision vector layout."""

import numpy as np
import pytest

from multishoot.core.problem import FixedFinalTime, FreeFinalTime, as_final_time
from multishoot.core.exceptions import ConfigurationError, DimensionError
from multishoot.transcription.codec import DecisionLayout


def test_size_fixed_and_free():
    """Length is n N + m N, plus one slot for a free final time."""
    fixed = DecisionLayout(state_dim=3, control_dim=2, num_intervals=5, final_time=FixedFinalTime(2.0))
    free = DecisionLayout(state_dim=3, control_dim=2, num_intervals=5, final_time=FreeFinalTime())

    assert fixed.size == 3 * 5 + 2 * 5
    assert free.size == 3 * 5 + 2 * 5 + 1


def test_decode_fixed_final_time():
    """States node-major with x0 prepended, then controls, tf from the tag."""
    layout = DecisionLayout(state_dim=2, control_dim=1, num_intervals=3, final_time=FixedFinalTime(1.5))
    x0 = np.array([10.0, 20.0])
    w = np.arange(9, dtype=float)

    guess = layout.decode(w, x0)

    assert guess.states.shape == (4, 2)
    assert np.allclose(guess.states[0], x0)
    assert np.allclose(guess.states[1:], [[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]])
    assert np.allclose(guess.controls, [[6.0], [7.0], [8.0]])
    assert guess.final_time == 1.5
    assert np.allclose(guess.time_grid, [0.0, 0.5, 1.0, 1.5])


def test_decode_free_final_time():
    """The last entry is tf when the final time is free."""
    layout = DecisionLayout(state_dim=1, control_dim=2, num_intervals=2, final_time=FreeFinalTime())
    w = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.5])

    guess = layout.decode(w, np.array([0.0]))

    assert np.allclose(guess.states.ravel(), [0.0, 1.0, 2.0])
    assert np.allclose(guess.controls, [[3.0, 4.0], [5.0, 6.0]])
    assert guess.final_time == 7.5


@pytest.mark.parametrize("final_time", [FixedFinalTime(3.0), FreeFinalTime()])
def test_encode_decode_round_trip(final_time):
    """encode(decode(w)) reproduces w."""
    layout = DecisionLayout(state_dim=3, control_dim=2, num_intervals=4, final_time=final_time)
    rng = np.random.default_rng(0)
    w = rng.standard_normal(layout.size)
    if final_time.is_free:
        w[-1] = 2.5

    guess = layout.decode(w, np.array([1.0, -1.0, 0.5]))
    w_again = layout.encode(guess.states, guess.controls, guess.final_time)

    assert np.array_equal(w_again, w)


def test_decode_rejects_wrong_length():
    """A decision vector of the wrong size is a dimension error."""
    layout = DecisionLayout(state_dim=2, control_dim=1, num_intervals=3, final_time=FreeFinalTime())

    with pytest.raises(DimensionError):
        layout.decode(np.zeros(9), np.zeros(2))   # missing tf slot

    with pytest.raises(DimensionError):
        layout.decode(np.zeros(10), np.zeros(3))  # wrong x0


def test_encode_rejects_bad_shapes():
    layout = DecisionLayout(state_dim=2, control_dim=1, num_intervals=3, final_time=FreeFinalTime())

    with pytest.raises(DimensionError):
        layout.encode(np.zeros((3, 2)), np.zeros((3, 1)), 1.0)

    with pytest.raises(DimensionError):
        layout.encode(np.zeros((4, 2)), np.zeros((3, 1)))  # free tf needs a value


def test_initial_guess():
    """All ones, with the tf guess in the last slot."""
    fixed = DecisionLayout(state_dim=2, control_dim=1, num_intervals=3, final_time=FixedFinalTime(1.0))
    free = DecisionLayout(state_dim=2, control_dim=1, num_intervals=3, final_time=FreeFinalTime())

    assert np.array_equal(fixed.initial_guess(), np.ones(9))
    w0 = free.initial_guess()
    assert np.array_equal(w0[:-1], np.ones(9))
    assert w0[-1] == 10.0


def test_final_time_validation():
    with pytest.raises(ConfigurationError):
        FixedFinalTime(0.0)
    with pytest.raises(ConfigurationError):
        FixedFinalTime(-1.0)
    with pytest.raises(ConfigurationError):
        FreeFinalTime(guess=-3.0)

    assert as_final_time(None) == FreeFinalTime()
    assert as_final_time(2.0) == FixedFinalTime(2.0)


def test_layout_rejects_empty_grids():
    with pytest.raises(ConfigurationError):
        DecisionLayout(state_dim=1, control_dim=1, num_intervals=0, final_time=FixedFinalTime(1.0))

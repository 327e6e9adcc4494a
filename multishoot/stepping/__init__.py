"""Forward simulation and trajectory reconstruction."""

from multishoot.stepping.forward import rk_step, simulate, forward_simulate
from multishoot.stepping.trajectory import ContinuousTrajectory, reconstruct

__all__ = [
    "rk_step",
    "simulate",
    "forward_simulate",
    "ContinuousTrajectory",
    "reconstruct",
]

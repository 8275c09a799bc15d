"""Exception types and input checks shared by the solvers.

Two failure classes are kept apart so callers can tell a rejected input
from a solver that ran out of budget:

- ``InvalidFlowError``: the inputs are outside the physical domain
  (subsonic freestream, γ <= 1, angles out of range).
- ``ConvergenceError``: a root-finder or ODE integrator did not meet its
  tolerance within its iteration/step budget, or no solution bracket
  exists for the requested geometry.
"""


class InvalidFlowError(ValueError):
    """Raised when a flow state or angle is outside the valid domain."""


class ConvergenceError(RuntimeError):
    """Raised when an iterative solver fails to converge."""


def require_gamma(gamma):
    if gamma <= 1.0:
        raise InvalidFlowError(f"gamma must be > 1, got {gamma}")


def require_supersonic(M):
    if M <= 1.0:
        raise InvalidFlowError(f"Supersonic freestream required, got M = {M}")


def require_angle(angle, name="angle", upper=90.0):
    """Check 0 <= angle < upper [degrees]."""
    if angle < 0.0 or angle >= upper:
        raise InvalidFlowError(
            f"{name} must be in [0, {upper:g}) degrees, got {angle}"
        )

# aerostruct/config.py
"""
Solver configuration and defaults.

A SolverConfig is passed explicitly to every analysis entry point; nothing
in the package reads process-wide settings.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SolverConfig:
    """Numerical settings for one analysis run."""

    # Vortex lattice
    core_size: float = 1e-8           # finite-core radius of vortex filaments (m)

    # Linear solves
    aic_cond_limit: float = 1e12      # AIC condition number before SingularSystemError
    stiffness_cond_limit: float = 1e14

    # Newton driver
    tolerance: float = 1e-9           # absolute tolerance on |R|
    max_iterations: int = 20
    jacobian: str = "complex_step"    # or "finite_difference"

    # Structures
    beam_ratio: float = 0.35          # chordwise spar location (0 = LE, 1 = TE)
    ks_rho: float = 10.0              # KS aggregation parameter for failure

    def with_options(self, **changes) -> "SolverConfig":
        """Copy with some fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = SolverConfig()

# aerostruct/kernel - Discipline-agnostic numerical core
"""
KERNEL: THE SHARED NUMERICAL FOUNDATION
=======================================

Both disciplines and the coupling reduce to the same plumbing:
- Map (node_id, local_dof) → global index, and surfaces → state slices
- Scatter-add element matrices into global ones
- Direct linear solves that refuse singular systems
- A Newton driver over one flattened state vector, with Jacobians from
  complex-step or finite differences of a pure residual

The VORTEX LATTICE and BEAM packages supply the physics; the kernel does
not know about either.
"""

from .dof import DOFManager, StateLayout, DimensionMismatchError
from .solve import (
    SingularSystemError,
    ConvergenceError,
    apply_constraints,
    solve_linear,
    solve_dense,
    newton_solve,
)
from .jacobian import complex_step_jacobian, finite_difference_jacobian, jacobian

__all__ = [
    'DOFManager', 'StateLayout', 'DimensionMismatchError',
    'SingularSystemError', 'ConvergenceError',
    'apply_constraints', 'solve_linear', 'solve_dense', 'newton_solve',
    'complex_step_jacobian', 'finite_difference_jacobian', 'jacobian',
]

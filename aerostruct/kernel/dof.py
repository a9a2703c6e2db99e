# aerostruct/kernel/dof.py
"""
DOF MANAGER AND STATE LAYOUT
============================

PURPOSE:
--------
Two indexing problems show up everywhere in a coupled analysis:

1. Beam nodes → rows of the stiffness matrix.
   Every spatial beam node carries 6 DOFs (ux, uy, uz, rx, ry, rz), so
   "node 4, rotation about y" lives at global index 6*4 + 4 = 28.

2. Surfaces → slices of the flattened coupled state.
   The Newton solver only sees ONE vector:

       x = [ Γ_wing | Γ_htail | ... | δ_wing | δ_htail | ... | α ]

   and it needs to know where each surface's circulations and
   displacements start and stop.

DOFManager handles (1); StateLayout handles (2). Both fail fast with
DimensionMismatchError when sizes don't line up, since that is always a
configuration bug rather than something to recover from at runtime.

USAGE:
------
    dof = DOFManager(dof_per_node=6)
    dof.idx(node_id=2, local_dof=3)     # → 15 (rx of node 2)

    layout = StateLayout.build(
        names=["wing", "htail"],
        panel_shapes=[(5, 10), (3, 6)],
        node_counts=[11, 7],
    )
    layout.size                          # 50 + 18 + 66 + 42 + 1
    layout.circulations(x, "wing")       # → (5, 10) view
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np


class DimensionMismatchError(ValueError):
    """Raised when array sizes or state partitions do not agree."""
    pass


@dataclass
class DOFManager:
    """
    Manages degree-of-freedom indexing for structural analysis.

    Attributes:
    -----------
    dof_per_node : int
        Number of DOFs per node. Spatial beams use 6:
        0=ux, 1=uy, 2=uz, 3=rx, 4=ry, 5=rz

    Examples:
    ---------
    >>> dof = DOFManager(dof_per_node=6)
    >>> dof.idx(1, 0)
    6
    >>> dof.element_dof_map([0, 1])
    [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11]
    """
    dof_per_node: int

    def idx(self, node_id: int, local_dof: int) -> int:
        """Global DOF index of a node's local DOF."""
        return self.dof_per_node * node_id + local_dof

    def ndof(self, n_nodes: int) -> int:
        """Total DOFs for a system with n_nodes."""
        return self.dof_per_node * n_nodes

    def node_dofs(self, node_id: int) -> List[int]:
        """
        All global DOF indices of a single node.

        Useful for clamping a node (e.g. the wing root) or for pulling
        the 6-vector of displacements/rotations at a node.
        """
        base = self.dof_per_node * node_id
        return list(range(base, base + self.dof_per_node))

    def element_dof_map(self, node_ids: List[int]) -> List[int]:
        """
        Flattened DOF map for an element connecting several nodes.

        For a 2-node beam with 6 DOF/node this is 12 indices, which is
        exactly the row/column order of the 12×12 element stiffness.
        """
        result = []
        for node_id in node_ids:
            result.extend(self.node_dofs(node_id))
        return result

    def fixed_dofs(self, node_ids: Sequence[int]) -> List[int]:
        """All DOFs of the given (clamped) nodes."""
        result = []
        for node_id in node_ids:
            result.extend(self.node_dofs(node_id))
        return result


DOF_3D_FRAME = DOFManager(dof_per_node=6)   # ux, uy, uz, rx, ry, rz


@dataclass(frozen=True)
class StateLayout:
    """
    Partition of the flattened aerostructural state vector.

    The layout is fixed for one problem instance: surface order,
    circulation grid shapes and beam node counts never change between
    Newton iterations.

    Parameters:
    -----------
    names : tuple of str
        Surface names, in the order they appear in every block.
    panel_shapes : tuple of (n_chord, n_span)
        Circulation grid shape per surface.
    node_counts : tuple of int
        Beam node count per surface (6 state entries per node).
    """
    names: Tuple[str, ...]
    panel_shapes: Tuple[Tuple[int, int], ...]
    node_counts: Tuple[int, ...]

    @classmethod
    def build(cls, names, panel_shapes, node_counts) -> "StateLayout":
        names = tuple(names)
        panel_shapes = tuple(tuple(int(n) for n in shape) for shape in panel_shapes)
        node_counts = tuple(int(n) for n in node_counts)
        if not (len(names) == len(panel_shapes) == len(node_counts)):
            raise DimensionMismatchError(
                f"Got {len(names)} surface names, {len(panel_shapes)} panel grids "
                f"and {len(node_counts)} beam meshes; they must match."
            )
        if len(set(names)) != len(names):
            raise DimensionMismatchError(f"Surface names must be unique, got {names}")
        return cls(names, panel_shapes, node_counts)

    @property
    def n_panels(self) -> int:
        return int(sum(nc * ns for nc, ns in self.panel_shapes))

    @property
    def n_structural(self) -> int:
        return int(sum(6 * n for n in self.node_counts))

    @property
    def size(self) -> int:
        return self.n_panels + self.n_structural + 1

    def _offsets(self) -> Tuple[Dict[str, slice], Dict[str, slice]]:
        gamma, disp = {}, {}
        start = 0
        for name, (nc, ns) in zip(self.names, self.panel_shapes):
            gamma[name] = slice(start, start + nc * ns)
            start += nc * ns
        for name, n in zip(self.names, self.node_counts):
            disp[name] = slice(start, start + 6 * n)
            start += 6 * n
        return gamma, disp

    @property
    def aerodynamic_slice(self) -> slice:
        return slice(0, self.n_panels)

    @property
    def structural_slice(self) -> slice:
        return slice(self.n_panels, self.n_panels + self.n_structural)

    @property
    def trim_index(self) -> int:
        return self.size - 1

    def check(self, x: np.ndarray) -> None:
        """Raise DimensionMismatchError unless x is a flat vector of the right size."""
        if x.ndim != 1 or x.shape[0] != self.size:
            raise DimensionMismatchError(
                f"State vector has shape {x.shape}, expected ({self.size},)"
            )

    def circulations(self, x: np.ndarray, name: str) -> np.ndarray:
        """(n_chord, n_span) circulation grid of one surface."""
        gamma, _ = self._offsets()
        return x[gamma[name]].reshape(self.panel_shapes[self.names.index(name)])

    def displacements(self, x: np.ndarray, name: str) -> np.ndarray:
        """(n_nodes, 6) beam displacement/rotation array of one surface."""
        _, disp = self._offsets()
        return x[disp[name]].reshape(-1, 6)

    def split(self, x: np.ndarray):
        """
        Split a state vector into its three blocks.

        Returns:
        --------
        gammas : dict name → (n_chord, n_span)
        displacements : dict name → (n_nodes, 6)
        alpha : scalar trim unknown
        """
        self.check(x)
        gammas = {name: self.circulations(x, name) for name in self.names}
        disps = {name: self.displacements(x, name) for name in self.names}
        return gammas, disps, x[self.trim_index]

    def join(self, gammas, displacements, alpha) -> np.ndarray:
        """Inverse of split(); accepts dicts keyed by surface name."""
        parts = []
        for name, shape in zip(self.names, self.panel_shapes):
            g = np.asarray(gammas[name])
            if g.shape != shape:
                raise DimensionMismatchError(
                    f"Circulations of '{name}' have shape {g.shape}, expected {shape}"
                )
            parts.append(g.ravel())
        for name, n in zip(self.names, self.node_counts):
            d = np.asarray(displacements[name])
            if d.shape != (n, 6):
                raise DimensionMismatchError(
                    f"Displacements of '{name}' have shape {d.shape}, expected ({n}, 6)"
                )
            parts.append(d.ravel())
        parts.append(np.atleast_1d(alpha))
        dtype = np.result_type(*parts)
        return np.concatenate(parts).astype(dtype, copy=False)

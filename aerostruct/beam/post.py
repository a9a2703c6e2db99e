# aerostruct/beam/post.py
"""
POST-PROCESSING: Stresses, Failure, Weight, Energy
==================================================

PURPOSE:
--------
Turn nodal displacements into the quantities a designer checks:

1. Element end forces in local axes:   f_loc = K_local · T · d_e
2. Tube stresses at each element end, on the outer fibre:

       σ_axial   = N / A
       σ_bending = √(My² + Mz²) · r_o / I
       τ_torsion = T · r_o / J

       σ_vm = √((σ_axial ± σ_bending)² + 3τ²)       (worst of ±)

3. KS aggregate of the failure constraints g = σ_vm / σ_yield − 1:

       KS = g_max + (1/ρ) ln Σ exp(ρ (g − g_max))

   KS ≥ max(g); the structure passes when KS ≤ 0.

4. Structural weight W = g Σ ρ_m A L, and strain energy U = ½ dᵀ K d.
"""

import numpy as np

from .assembly import assemble_beam_stiffness
from .elements import element_frame, beam_transform, tube_local_stiffness
from .model import BeamModel
from ..kernel.dof import DOF_3D_FRAME

GRAVITY = 9.80665  # m/s²


def element_end_forces(model: BeamModel, displacements: np.ndarray) -> np.ndarray:
    """
    (n_elements, 12) local end forces of every element.

    Order per element: [N, Vy, Vz, T, My, Mz] at node i, then at node j.
    """
    d = np.asarray(displacements).reshape(-1)
    out = []
    for e in model.elements:
        L, R = element_frame(model.nodes[e.ni], model.nodes[e.nj])
        T = beam_transform(R)
        k = tube_local_stiffness(model.material, e.tube, L)
        d_e = d[DOF_3D_FRAME.element_dof_map([e.ni, e.nj])]
        out.append(k @ (T @ d_e))
    return np.array(out)


def von_mises_stresses(model: BeamModel, displacements: np.ndarray) -> np.ndarray:
    """
    (n_elements, 2) von Mises stress at both ends of every element (Pa).
    """
    f = element_end_forces(model, displacements)
    stresses = np.zeros((len(model.tubes), 2))

    for k, tube in enumerate(model.tubes):
        for end in range(2):
            N, _, _, T, My, Mz = f[k, 6 * end:6 * end + 6]
            sigma_axial = N / tube.A
            sigma_bending = np.sqrt(My ** 2 + Mz ** 2) * tube.radius / tube.Iy
            tau = T * tube.radius / tube.J
            stresses[k, end] = max(
                np.sqrt((sigma_axial + sigma_bending) ** 2 + 3 * tau ** 2),
                np.sqrt((sigma_axial - sigma_bending) ** 2 + 3 * tau ** 2),
            )
    return stresses


def ks_failure(stresses: np.ndarray, yield_stress: float, rho: float = 10.0) -> float:
    """
    Kreisselmeier–Steinhauser aggregate of σ / σ_yield − 1.

    Returns:
    --------
    float
        Conservative (≥) estimate of the worst failure index; ≤ 0 means safe.
    """
    g = np.asarray(stresses).ravel() / yield_stress - 1.0
    g_max = np.max(g)
    return float(g_max + np.log(np.sum(np.exp(rho * (g - g_max)))) / rho)


def structural_weight(model: BeamModel) -> float:
    """Weight of all tubes (N)."""
    areas = np.array([tube.A for tube in model.tubes])
    return float(GRAVITY * model.material.density * np.sum(areas * model.element_lengths()))


def strain_energy(model: BeamModel, displacements: np.ndarray) -> float:
    """U = ½ dᵀ K d (J)."""
    d = np.asarray(displacements).reshape(-1)
    K = assemble_beam_stiffness(model)
    return float(0.5 * d @ K @ d)

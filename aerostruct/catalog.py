"""
CATALOG: SPAR MATERIAL PROPERTIES
=================================

PURPOSE:
--------
A small library of spar materials so that analyses can say
`material=ALUMINIUM_7075` instead of repeating E, G, yield and density
everywhere.

ENGINEERING CONTEXT:
--------------------
The spar is idealized as a thin-walled circular tube. Its behaviour needs:
- E (Young's modulus): axial and bending stiffness (EA, EI)
- G (shear modulus): torsional stiffness (GJ)
- Yield stress: allowable von Mises stress for the failure check
- Density: structural weight = density × A × L × g
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Material:
    """
    Isotropic material properties of a beam.

    Parameters:
    -----------
    name : str
        Human-readable name (e.g., "Aluminium 7075-T6")

    E : float
        Young's modulus (Pa)

    G : float
        Shear modulus (Pa)

    yield_stress : float
        Allowable stress (Pa), safety factor already applied

    density : float
        Mass density (kg/m³)
    """
    name: str
    E: float  # Young's modulus (Pa)
    G: float  # Shear modulus (Pa)
    yield_stress: float  # Pa
    density: float  # kg/m³

    def __post_init__(self):
        if self.E <= 0 or self.G <= 0:
            raise ValueError(f"Material '{self.name}' needs positive moduli, got E={self.E}, G={self.G}")
        if self.density < 0:
            raise ValueError(f"Material '{self.name}' has negative density {self.density}")


# ============================================================================
# MATERIAL DEFINITIONS
# ============================================================================

ALUMINIUM_7075 = Material(
    name="Aluminium 7075-T6",
    E=71.7e9,
    G=26.9e9,
    yield_stress=503e6 / 1.5,  # ultimate-load factor of safety 1.5
    density=2810.0,
)

STEEL_4130 = Material(
    name="Steel 4130",
    E=205e9,
    G=80e9,
    yield_stress=435e6 / 1.5,
    density=7850.0,
)

# Quasi-isotropic carbon tube, typical of small UAV spars
CARBON_TUBE = Material(
    name="Carbon fibre tube",
    E=85e9,
    G=25e9,
    yield_stress=350e6 / 2.5,
    density=1600.0,
)

DEFAULT_MATERIAL = ALUMINIUM_7075

MATERIALS = {m.name: m for m in (ALUMINIUM_7075, STEEL_4130, CARBON_TUBE)}

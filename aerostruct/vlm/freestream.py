# aerostruct/vlm/freestream.py
"""
FLIGHT CONDITION, REFERENCE VALUES AND AXIS SYSTEMS
===================================================

BODY AXES (the mesh frame):
    x aft along the chord, y towards the right tip, z up.

The freestream seen by the aircraft at angle of attack α and sideslip β:

    V∞ = U (cos α cos β,  −sin β,  sin α cos β)

STABILITY AXES: body axes rotated by α about y, so x_s lies in the
plane of symmetry along the projection of V∞.

WIND AXES: stability axes rotated by β about z, so x_w lies along V∞.
In wind axes the force components are (drag, side force, lift).

Angles are given in degrees, as an aerodynamicist would quote them.
They are converted with a plain multiplication so that complex-step
perturbations survive.
"""

from dataclasses import dataclass, field, replace

import numpy as np

from ..geometry import projected_area, reference_span, mean_aerodynamic_chord

DEG = np.pi / 180.0


@dataclass(frozen=True)
class Freestream:
    """
    Flight condition.

    Parameters:
    -----------
    speed : float
        Freestream speed U (m/s)
    alpha : float
        Angle of attack (degrees)
    beta : float
        Sideslip angle (degrees)
    omega : np.ndarray
        Body angular rates (p, q, r) in rad/s
    """
    speed: float = 1.0
    alpha: float = 0.0
    beta: float = 0.0
    omega: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if np.real(self.speed) <= 0:
            raise ValueError(f"Freestream speed must be positive, got {self.speed}")

    def with_alpha(self, alpha) -> "Freestream":
        return replace(self, alpha=alpha)

    @property
    def velocity(self) -> np.ndarray:
        """Freestream velocity vector in body axes."""
        a = self.alpha * DEG
        b = self.beta * DEG
        return self.speed * np.array([np.cos(a) * np.cos(b), -np.sin(b), np.sin(a) * np.cos(b)])

    @property
    def direction(self) -> np.ndarray:
        """Unit vector of the trailing legs."""
        return self.velocity / self.speed


@dataclass(frozen=True)
class References:
    """
    Reference values for non-dimensionalization.

    Parameters:
    -----------
    density : float
        Air density ρ (kg/m³)
    area : float
        Reference area S (m²)
    span : float
        Reference span b (m), for roll and yaw moments
    chord : float
        Reference chord c (m), for pitching moment
    location : np.ndarray
        Moment reference point in body axes (m)
    """
    density: float = 1.225
    area: float = 1.0
    span: float = 1.0
    chord: float = 1.0
    location: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if self.density <= 0 or self.area <= 0 or self.span <= 0 or self.chord <= 0:
            raise ValueError(
                f"Reference values must be positive, got density={self.density}, "
                f"area={self.area}, span={self.span}, chord={self.chord}"
            )

    @classmethod
    def from_mesh(cls, mesh: np.ndarray, density: float = 1.225, location=None) -> "References":
        """Projected area, span and mean aerodynamic chord of a mesh."""
        c = mean_aerodynamic_chord(mesh)
        if location is None:
            location = np.array([np.min(np.real(mesh[0, :, 0])) + 0.25 * c, 0.0, 0.0])
        return cls(
            density=density,
            area=projected_area(mesh),
            span=reference_span(mesh),
            chord=c,
            location=np.asarray(location, dtype=float),
        )


def dynamic_pressure(density, speed):
    return 0.5 * density * speed ** 2


def body_to_stability(vector: np.ndarray, alpha) -> np.ndarray:
    """Rotate (..., 3) body-axis vectors by α (degrees) about y."""
    a = alpha * DEG
    ca, sa = np.cos(a), np.sin(a)
    x, y, z = vector[..., 0], vector[..., 1], vector[..., 2]
    return np.stack([ca * x + sa * z, y, -sa * x + ca * z], axis=-1)


def stability_to_wind(vector: np.ndarray, beta) -> np.ndarray:
    """Rotate (..., 3) stability-axis vectors by β (degrees) about z."""
    b = beta * DEG
    cb, sb = np.cos(b), np.sin(b)
    x, y, z = vector[..., 0], vector[..., 1], vector[..., 2]
    return np.stack([cb * x - sb * y, sb * x + cb * y, z], axis=-1)


def body_to_wind(vector: np.ndarray, alpha, beta) -> np.ndarray:
    return stability_to_wind(body_to_stability(vector, alpha), beta)


def stability_flip(vector: np.ndarray) -> np.ndarray:
    """
    Mesh-axis moments (x aft, z up) in flight-mechanics signs (x forward,
    z down), so positive Cl drops the right wing and positive Cn yaws the
    nose right.
    """
    return vector * np.array([-1.0, 1.0, -1.0])


def force_coefficients(force: np.ndarray, speed, refs: References) -> np.ndarray:
    """F / (q S)"""
    return force / (dynamic_pressure(refs.density, speed) * refs.area)


def moment_coefficients(moment: np.ndarray, speed, refs: References) -> np.ndarray:
    """(Mx / qSb, My / qSc, Mz / qSb)"""
    qS = dynamic_pressure(refs.density, speed) * refs.area
    scale = np.array([refs.span, refs.chord, refs.span])
    return moment / (qS * scale)


def rate_coefficients(omega: np.ndarray, speed, refs: References) -> np.ndarray:
    """Non-dimensional rates (p̂, q̂, r̂) = (pb/2U, qc/2U, rb/2U)."""
    scale = np.array([refs.span, refs.chord, refs.span])
    return omega * scale / (2.0 * speed)


def rates_from_coefficients(rates: np.ndarray, speed, refs: References) -> np.ndarray:
    """Inverse of rate_coefficients()."""
    scale = np.array([refs.span, refs.chord, refs.span])
    return rates * 2.0 * speed / scale

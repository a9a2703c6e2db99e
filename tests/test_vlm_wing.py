# tests/test_vlm_wing.py
"""
END-TO-END RIGID WING CHECKS
============================

Rectangular wing, span 5 m, chord 1 m (aspect ratio 5), 10 × 5 panels,
α = 5°, unit speed at sea-level density.

Reference numbers:

    Helmbold (low aspect ratio lifting surface):
        CL_α = 2πA / (2 + √(A² + 4))  ≈ 4.25 /rad   → CL ≈ 0.371

    Prandtl lifting line (elliptic loading):
        CL_α = 2πA / (A + 2)           ≈ 4.49 /rad   → CL ≈ 0.392

A lifting-surface model of a rectangular wing of this aspect ratio lands
close to Helmbold and below the lifting-line value.
"""

import numpy as np
import pytest

from aerostruct.geometry import Surface, rectangular_mesh
from aerostruct.vlm import (
    Freestream,
    References,
    solve_case,
    spanwise_loading,
    stability_derivatives,
)
from aerostruct.vlm.freestream import DEG, dynamic_pressure

SPAN = 5.0
CHORD = 1.0
ALPHA = 5.0
ASPECT = SPAN / CHORD


@pytest.fixture(scope="module")
def wing():
    mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=10, n_chord=5)
    return Surface("wing", mesh)


@pytest.fixture(scope="module")
def refs():
    return References(density=1.225, area=SPAN * CHORD, span=SPAN, chord=CHORD,
                      location=np.array([0.25 * CHORD, 0.0, 0.0]))


@pytest.fixture(scope="module")
def freestream():
    return Freestream(speed=1.0, alpha=ALPHA)


@pytest.fixture(scope="module")
def result(wing, freestream, refs):
    return solve_case([wing], freestream, refs)


def test_lift_matches_helmbold(result):
    alpha = ALPHA * DEG
    helmbold = 2 * np.pi * ASPECT / (2 + np.sqrt(ASPECT**2 + 4)) * alpha
    lifting_line = 2 * np.pi * ASPECT / (ASPECT + 2) * alpha

    assert result.CL == pytest.approx(helmbold, rel=0.05)
    assert result.CL < lifting_line


def test_nearfield_and_farfield_lift_agree(result):
    """
    WHAT: Kutta–Joukowski lift on the bound legs ≈ Trefftz-plane lift.
    WHY: Two independent routes to the same lift; disagreement means a
         bookkeeping error in one of them.
    """
    assert result.farfield[2] == pytest.approx(result.nearfield[2], rel=0.02)


def test_induced_drag_is_positive(result):
    assert result.CDi > 0.0
    # A 10-strip Trefftz trace overestimates the efficiency; see the refined check below
    e = result.farfield[2] ** 2 / (np.pi * ASPECT * result.CDi)
    assert e > 0.85


def test_span_efficiency_on_refined_mesh(freestream, refs):
    """Forty strips bring the rectangular wing's efficiency just below one."""
    mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=40, n_chord=5)
    fine = solve_case([Surface("wing", mesh)], freestream, refs)
    e = fine.farfield[2] ** 2 / (np.pi * ASPECT * fine.CDi)
    assert 0.95 < e < 1.01


def test_symmetric_case_has_no_lateral_loads(result):
    CD, CY, CL, Cl, Cm, Cn = result.nearfield
    assert abs(CY) < 1e-10
    assert abs(Cl) < 1e-10
    assert abs(Cn) < 1e-10
    assert abs(result.farfield[1]) < 1e-10


def test_surface_results_sum_to_case(result):
    s = result["wing"]
    assert s.circulations.shape == (5, 10)
    assert s.forces.shape == (5, 10, 3)
    np.testing.assert_allclose(s.nearfield, result.nearfield, atol=1e-14)
    np.testing.assert_allclose(s.farfield, result.farfield, atol=1e-14)


def test_positive_alpha_gives_positive_circulation(result):
    assert np.all(result["wing"].circulations[0] > 0.0)


def test_moment_transfer_between_reference_points(wing, freestream, refs, result):
    """Moving the reference point from c/4 to the leading edge adds −0.25 c · F_z."""
    le_refs = References(density=refs.density, area=refs.area, span=refs.span,
                         chord=refs.chord, location=np.zeros(3))
    le = solve_case([wing], freestream, le_refs)

    Fz = np.sum(result["wing"].forces[..., 2])
    q = dynamic_pressure(refs.density, freestream.speed)
    expected = -0.25 * CHORD * Fz / (q * refs.area * refs.chord)
    assert le.nearfield[4] - result.nearfield[4] == pytest.approx(expected, rel=1e-9)


def test_spanwise_loading_is_symmetric(wing, freestream, refs, result):
    y, cl = spanwise_loading(result["wing"], wing, freestream, refs)
    assert y.shape == cl.shape == (10,)
    np.testing.assert_allclose(cl, cl[::-1], rtol=1e-9)
    # Tip loss: the centre strips carry the highest sectional lift
    assert np.argmax(cl) in (4, 5)
    assert cl[0] < cl[4]
    # Strip lift integrates back to the total lift
    CL_strips = np.sum(cl * CHORD * np.diff(wing.mesh[0, :, 1])) / refs.area
    assert CL_strips == pytest.approx(result.CL, rel=1e-9)


def test_mirrored_half_wing_equals_full_wing(freestream, refs, result):
    half = rectangular_mesh(span=SPAN, chord=CHORD, n_span=5, n_chord=5, half=True)
    mirrored = solve_case([Surface("wing", half, mirror=True)], freestream, refs)

    np.testing.assert_allclose(mirrored.nearfield, result.nearfield, rtol=1e-8, atol=1e-12)
    np.testing.assert_allclose(mirrored.farfield, result.farfield, rtol=1e-8, atol=1e-12)


class TestStabilityDerivatives:

    @pytest.fixture(scope="class")
    def derivatives(self, wing, freestream, refs):
        return stability_derivatives([wing], freestream, refs)

    def test_keys_and_shapes(self, derivatives):
        assert set(derivatives) == {"alpha", "beta", "p", "q", "r"}
        for value in derivatives.values():
            assert value.shape == (6,)

    def test_lift_slope_matches_finite_difference(self, wing, refs, derivatives):
        """
        WHAT: Complex-step CL_α equals central differences of whole solves.
        WHY: Every stage, including the linear solve and the axis
             rotation, must carry the complex perturbation.
        """
        step = 1e-3  # degrees
        up = solve_case([wing], Freestream(speed=1.0, alpha=ALPHA + step), refs).nearfield
        down = solve_case([wing], Freestream(speed=1.0, alpha=ALPHA - step), refs).nearfield
        fd = (up - down) / (2 * step * DEG)

        assert derivatives["alpha"][2] == pytest.approx(fd[2], rel=1e-6)

    def test_lift_is_nearly_linear_in_alpha(self, derivatives, result):
        assert derivatives["alpha"][2] == pytest.approx(result.CL / (ALPHA * DEG), rel=0.03)

    def test_damping_signs(self, derivatives):
        # p turns about the aft-pointing mesh x axis and raises the right
        # wing; the damping moment drops it again, which is positive Cl
        assert derivatives["p"][3] > 0.0
        # Pitch rate about c/4 raises the effective incidence aft
        assert derivatives["q"][2] > 0.0


def cambered(mesh, max_camber=0.04):
    """Parabolic camber line on a flat mesh whose leading edge sits at x = 0."""
    camber = np.array(mesh, copy=True)
    s = mesh[..., 0] / CHORD
    camber[..., 2] += 4.0 * max_camber * CHORD * s * (1.0 - s)
    return camber


class TestCamber:

    def test_cambered_wing_lifts_at_zero_alpha(self, wing, refs):
        """
        WHAT: Camber normals alone tilt the boundary condition, so a wing
              at α = 0 carries lift while its horseshoes stay on the flat mesh.
        WHY: Camber only enters through the normals; dropping them silently
             gives the flat-plate answer.
        """
        fs = Freestream(speed=1.0, alpha=0.0)
        flat = solve_case([wing], fs, refs)
        curved = solve_case([Surface("wing", wing.mesh, camber=cambered(wing.mesh))], fs, refs)

        assert abs(flat.CL) < 1e-12
        assert curved.CL > 0.1
        np.testing.assert_allclose(curved["wing"].centers, flat["wing"].centers)

    def test_mirrored_camber_matches_full(self, refs):
        fs = Freestream(speed=1.0, alpha=1.0)
        full = rectangular_mesh(span=SPAN, chord=CHORD, n_span=10, n_chord=5)
        half = rectangular_mesh(span=SPAN, chord=CHORD, n_span=5, n_chord=5, half=True)
        a = solve_case([Surface("wing", full, camber=cambered(full))], fs, refs)
        b = solve_case([Surface("wing", half, mirror=True, camber=cambered(half))], fs, refs)
        np.testing.assert_allclose(b.nearfield, a.nearfield, rtol=1e-8, atol=1e-12)

    def test_camber_shape_must_match_mesh(self, wing):
        with pytest.raises(ValueError, match="camber mesh"):
            Surface("wing", wing.mesh, camber=wing.mesh[:, :-1])


def test_references_from_mesh(wing, refs):
    derived = References.from_mesh(wing.mesh, density=1.225)
    assert derived.area == pytest.approx(refs.area)
    assert derived.span == pytest.approx(refs.span)
    assert derived.chord == pytest.approx(refs.chord)
    np.testing.assert_allclose(derived.location, refs.location)


def tapered_wing_mesh(n_half=10, n_chord=5):
    """
    Tapered wing of span 1 m with 5° dihedral and 1.14° leading-edge sweep,
    root chord 0.18 m, tip chord 0.16 m. Spanwise stations follow a sine
    distribution (clustered at the tips); chordwise stations are cosine.
    """
    half = 0.5 * np.sin(np.linspace(0.0, 0.5 * np.pi, n_half + 1))
    y = np.concatenate([-half[:0:-1], half])
    eta = np.abs(y) / 0.5
    chord = 0.18 + (0.16 - 0.18) * eta
    x_le = np.abs(y) * np.tan(np.radians(1.14))
    z = np.abs(y) * np.tan(np.radians(5.0))
    s = 0.5 * (1.0 - np.cos(np.linspace(0.0, np.pi, n_chord + 1)))

    mesh = np.zeros((n_chord + 1, y.size, 3))
    mesh[..., 0] = x_le[None, :] + s[:, None] * chord[None, :]
    mesh[..., 1] = y[None, :]
    mesh[..., 2] = z[None, :]
    return mesh


class TestTaperedDihedralWing:
    """
    α = 2°, β = 2° on a small tapered wing, checked against reference
    values for the same lattice:

        near field  [CD, CY, CL, Cl, Cm, Cn] = [0.001189, −0.000228, 0.152203,
                                                −0.000242, −0.003486, −0.000081]
        far field   [CDi, CY, CL]            = [0.00123, −0.000271, 0.152198]
    """

    @pytest.fixture(scope="class")
    def setup(self):
        taper = 0.16 / 0.18
        mac = 2.0 / 3.0 * 0.18 * (1 + taper + taper**2) / (1 + taper)
        refs = References(density=1.225, area=0.17, span=1.0, chord=mac,
                          location=np.array([0.25 * mac, 0.0, 0.0]))
        surfaces = [Surface("wing", tapered_wing_mesh())]
        return surfaces, Freestream(speed=1.0, alpha=2.0, beta=2.0), refs

    @pytest.fixture(scope="class")
    def case(self, setup):
        return solve_case(*setup)

    def test_nearfield_forces(self, case):
        CD, CY, CL = case.nearfield[:3]
        assert CD == pytest.approx(0.001189, abs=1e-5)
        assert CY == pytest.approx(-0.000228, abs=1e-5)
        assert CL == pytest.approx(0.152203, abs=1e-4)

    def test_nearfield_moments(self, case):
        """Roll and yaw moments come out in flight-mechanics signs."""
        Cl, Cm, Cn = case.nearfield[3:]
        assert Cl == pytest.approx(-0.000242, abs=2e-5)
        assert Cm == pytest.approx(-0.003486, abs=1e-4)
        assert Cn == pytest.approx(-0.000081, abs=1e-5)

    def test_farfield_forces(self, case):
        CDi, CY, CL = case.farfield
        assert CDi == pytest.approx(0.00123, abs=1e-5)
        assert CY == pytest.approx(-0.000271, abs=1e-5)
        assert CL == pytest.approx(0.152198, abs=1e-4)

    def test_derivative_signs(self, setup):
        derivatives = stability_derivatives(*setup)
        assert derivatives["alpha"][2] == pytest.approx(4.402229, rel=5e-3)
        # Dihedral effect
        assert derivatives["beta"][3] < 0.0
        assert derivatives["p"][3] > 0.0
        assert derivatives["q"][4] < 0.0

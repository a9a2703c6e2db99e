# tests/test_coupled.py
"""
COUPLED AEROSTRUCTURAL SOLVE
============================

Rectangular wing (span 5 m, chord 1 m, 10 × 5 panels) at α = 5° and
U = 1 m/s, so the total lift is about one newton, clamped at the centre.

    rigid spar:    tube r = 0.5 m,  t = 0.25 m   (deflections ~ 1e-12 m)
    flexible spar: tube r = 0.01 m, t = 0.5 mm   (tip deflection ~ 1 cm)

The flexible case stays in the small-deflection range where a single
Newton solve from the rigid guess converges in a handful of steps.
"""

import numpy as np
import pytest

from aerostruct.catalog import ALUMINIUM_7075
from aerostruct.config import DEFAULT_CONFIG
from aerostruct.coupled import (
    AerostructuralProblem,
    AerostructuralSurface,
    centre_nodes,
    solve_aerostructural,
)
from aerostruct.geometry import Surface, rectangular_mesh
from aerostruct.kernel.dof import DimensionMismatchError
from aerostruct.kernel.jacobian import finite_difference_jacobian
from aerostruct.kernel.solve import ConvergenceError
from aerostruct.transfer import transfer_displacements
from aerostruct.vlm import Freestream, References, panel_normals, solve_case

SPAN = 5.0
CHORD = 1.0


def make_problem(radius, thickness, weight=None, load_factor=1.0, mirror=False, config=DEFAULT_CONFIG):
    if mirror:
        mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=5, n_chord=5, half=True)
    else:
        mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=10, n_chord=5)
    wing = AerostructuralSurface(Surface("wing", mesh, mirror=mirror), ALUMINIUM_7075,
                                 radius=radius, thickness=thickness)
    refs = References(density=1.225, area=SPAN * CHORD, span=SPAN, chord=CHORD,
                      location=np.array([0.25 * CHORD, 0.0, 0.0]))
    return AerostructuralProblem([wing], Freestream(speed=1.0, alpha=5.0), refs,
                                 weight=weight, load_factor=load_factor, config=config)


@pytest.fixture(scope="module")
def rigid():
    return solve_aerostructural(make_problem(0.5, 0.25))


@pytest.fixture(scope="module")
def flexible():
    return solve_aerostructural(make_problem(0.01, 0.0005))


class TestLayout:

    def test_state_size(self):
        problem = make_problem(0.05, 0.002)
        # 50 circulations + 11 nodes × 6 DOFs + α
        assert problem.layout.n_panels == 50
        assert problem.layout.n_structural == 66
        assert problem.layout.size == 117
        assert problem.initial_guess().shape == (117,)

    def test_default_clamp_is_the_centre_node(self):
        problem = make_problem(0.05, 0.002)
        assert problem.models[0].constrained_nodes == (5,)

    def test_odd_panel_count_clamps_both_centre_nodes(self):
        """
        WHAT: Nine spanwise panels leave nodes 4 and 5 straddling y = 0;
              both are clamped and the wing bends symmetrically.
        WHY: Clamping only one of them would make the spar lopsided.
        """
        mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=9, n_chord=4)
        wing = AerostructuralSurface(Surface("wing", mesh), ALUMINIUM_7075, radius=0.01, thickness=0.0005)
        refs = References(density=1.225, area=SPAN * CHORD, span=SPAN, chord=CHORD)
        problem = AerostructuralProblem([wing], Freestream(speed=1.0, alpha=5.0), refs)
        assert problem.models[0].constrained_nodes == (4, 5)

        d = solve_aerostructural(problem)["wing"].displacements
        np.testing.assert_allclose(d[0, 2], d[-1, 2], rtol=1e-8)
        np.testing.assert_allclose(d[4], 0.0, atol=1e-12)
        np.testing.assert_allclose(d[5], 0.0, atol=1e-12)

    def test_centre_nodes_of_a_vertical_spar(self):
        # Every node on the plane: the root alone is clamped
        nodes = np.column_stack([np.zeros(4), np.zeros(4), np.linspace(0.0, 1.0, 4)])
        assert centre_nodes(nodes) == (0,)

    def test_wrong_state_size_raises(self):
        problem = make_problem(0.05, 0.002)
        with pytest.raises(DimensionMismatchError):
            solve_aerostructural(problem, x0=np.zeros(116))

    def test_invalid_weight_raises(self):
        with pytest.raises(ValueError):
            make_problem(0.05, 0.002, weight=-1.0)


class TestRigidLimit:

    def test_matches_rigid_vlm(self, rigid):
        """
        WHAT: A practically rigid spar reproduces the rigid VLM answer.
        WHY: The coupled residual must reduce to AIC·Γ = RHS when δ → 0.
        """
        problem = make_problem(0.5, 0.25)
        case = solve_case([c.surface for c in problem.components], problem.freestream, problem.refs)

        assert np.max(np.abs(rigid["wing"].displacements)) < 1e-6
        np.testing.assert_allclose(rigid.nearfield, case.nearfield, rtol=1e-6, atol=1e-10)
        np.testing.assert_allclose(rigid["wing"].circulations, case["wing"].circulations, rtol=1e-6)

    def test_converges_from_rigid_guess_immediately(self, rigid):
        assert rigid.iterations <= 1
        assert rigid.residual_norm < DEFAULT_CONFIG.tolerance

    def test_structure_is_safe(self, rigid):
        s = rigid["wing"]
        assert s.failure < 0.0
        assert s.structural_weight > 0.0
        assert rigid.load_factor is None


class TestFlexibleWing:

    def test_wing_bends_up_symmetrically(self, flexible):
        d = flexible["wing"].displacements
        assert flexible["wing"].tip_deflection > 0.0
        np.testing.assert_allclose(d[0, 2], d[-1, 2], rtol=1e-8)
        np.testing.assert_allclose(d[5], 0.0, atol=1e-12)

    def test_residual_converged(self, flexible):
        assert flexible.residual_norm < DEFAULT_CONFIG.tolerance
        assert flexible.history[-1] == flexible.residual_norm
        assert flexible.history[0] > flexible.residual_norm

    def test_deformed_mesh_follows_beam(self, flexible):
        s = flexible["wing"]
        # Leading-edge tip corner rises with the tip node
        mesh0 = rectangular_mesh(span=SPAN, chord=CHORD, n_span=10, n_chord=5)
        assert s.mesh[0, -1, 2] - mesh0[0, -1, 2] > 0.0
        assert s.mesh.shape == mesh0.shape

    def test_nose_up_twist_adds_lift(self, rigid, flexible):
        """Lift acts ahead of the 35 % chord spar, so the wing twists nose-up."""
        assert np.all(flexible["wing"].displacements[6:, 4] > 0.0)
        assert flexible.CL > rigid.CL

    def test_loads_balance_lift(self, flexible):
        loads = flexible["wing"].loads
        forces = flexible["wing"].forces
        np.testing.assert_allclose(np.sum(loads[:, :3], axis=0), np.sum(forces, axis=(0, 1)), atol=1e-12)

    def test_mirrored_surface_gives_same_answer(self, flexible):
        mirrored = solve_aerostructural(make_problem(0.01, 0.0005, mirror=True))
        assert mirrored["wing"].tip_deflection == pytest.approx(flexible["wing"].tip_deflection, rel=1e-6)
        assert mirrored.CL == pytest.approx(flexible.CL, rel=1e-8)


class TestTrim:

    def test_lift_equals_weight(self):
        result = solve_aerostructural(make_problem(0.01, 0.0005, weight=1.0))
        assert result.lift == pytest.approx(1.0, rel=1e-8)
        assert result.load_factor == pytest.approx(1.0, rel=1e-8)
        assert 3.0 < result.alpha < 6.0

    def test_load_factor_raises_alpha(self):
        one_g = solve_aerostructural(make_problem(0.01, 0.0005, weight=0.5))
        two_g = solve_aerostructural(make_problem(0.01, 0.0005, weight=0.5, load_factor=2.0))
        assert two_g.alpha > one_g.alpha
        assert two_g.lift == pytest.approx(1.0, rel=1e-8)
        assert two_g["wing"].tip_deflection > one_g["wing"].tip_deflection


class TestNewtonDriver:

    def test_iteration_limit_raises_with_last_iterate(self):
        problem = make_problem(0.01, 0.0005, config=DEFAULT_CONFIG.with_options(max_iterations=0))
        x0 = np.zeros(problem.layout.size)
        with pytest.raises(ConvergenceError) as excinfo:
            solve_aerostructural(problem, x0=x0)
        err = excinfo.value
        assert err.iterations == 0
        # Only the α row is violated at the zero state: |α − α₀| = 5
        assert err.residual_norm == pytest.approx(5.0)
        assert err.x.shape == x0.shape

    def test_finite_difference_jacobian_also_converges(self, flexible):
        config = DEFAULT_CONFIG.with_options(jacobian="finite_difference", tolerance=1e-8)
        result = solve_aerostructural(make_problem(0.01, 0.0005, config=config))
        assert result["wing"].tip_deflection == pytest.approx(flexible["wing"].tip_deflection, rel=1e-5)

    def test_complex_step_matches_finite_difference_on_aero_rows(self):
        problem = make_problem(0.01, 0.0005)
        x = problem.initial_guess()
        J_cs = problem.jacobian(x)
        J_fd = finite_difference_jacobian(problem.residual, x)

        aero = problem.layout.aerodynamic_slice
        assert J_cs.shape == (117, 117)
        np.testing.assert_allclose(J_cs[aero], J_fd[aero], rtol=1e-4, atol=1e-5)
        # Aerodynamic rows w.r.t. circulations are the AIC itself
        state = problem._evaluate(x)
        np.testing.assert_allclose(J_cs[aero, aero], state["AIC"], rtol=1e-12, atol=1e-14)

    def test_residual_is_pure(self):
        problem = make_problem(0.01, 0.0005)
        x = problem.initial_guess()
        first = problem.residual(x)
        problem.residual(x + 0.01)
        np.testing.assert_array_equal(problem.residual(x), first)


class TestWingAndTail:

    @pytest.fixture(scope="class")
    def problem(self):
        wing_mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=10, n_chord=5)
        tail_mesh = rectangular_mesh(span=2.0, chord=0.5, n_span=4, n_chord=2, offset=(4.0, 0.0, 0.0))
        components = [
            AerostructuralSurface(Surface("wing", wing_mesh), ALUMINIUM_7075, radius=0.01, thickness=0.0005),
            AerostructuralSurface(Surface("tail", tail_mesh), ALUMINIUM_7075, radius=0.05, thickness=0.002),
        ]
        refs = References(density=1.225, area=SPAN * CHORD, span=SPAN, chord=CHORD)
        return AerostructuralProblem(components, Freestream(speed=1.0, alpha=5.0), refs)

    def test_block_diagonal_structure(self, problem):
        # 11 wing nodes + 5 tail nodes, 6 DOFs each
        assert problem.stiffness.shape == (96, 96)
        assert np.all(problem.stiffness[:66, 66:] == 0.0)
        assert problem.layout.size == 50 + 8 + 96 + 1
        # Centre nodes of both spars are clamped
        assert problem.fixed[:6] == list(range(30, 36))
        assert problem.fixed[6:] == list(range(66 + 12, 66 + 18))

    def test_tail_sits_in_the_wing_downwash(self, problem):
        result = solve_aerostructural(problem)
        wing, tail = result["wing"], result["tail"]
        assert wing.tip_deflection > 0.0
        # Both surfaces are normalized by the wing area; per unit of its own
        # area the tail lifts less than the wing because of the downwash.
        tail_area = 2.0 * 0.5
        assert 0.0 < tail.nearfield[2] * SPAN * CHORD / tail_area < wing.nearfield[2]
        np.testing.assert_allclose(wing.nearfield[2] + tail.nearfield[2], result.CL, rtol=1e-12)


class TestCamber:

    @staticmethod
    def cambered_problem(radius, thickness):
        mesh = rectangular_mesh(span=SPAN, chord=CHORD, n_span=10, n_chord=5)
        camber = np.array(mesh, copy=True)
        s = mesh[..., 0] / CHORD
        camber[..., 2] += 0.16 * CHORD * s * (1.0 - s)
        wing = AerostructuralSurface(Surface("wing", mesh, camber=camber), ALUMINIUM_7075,
                                     radius=radius, thickness=thickness)
        refs = References(density=1.225, area=SPAN * CHORD, span=SPAN, chord=CHORD,
                          location=np.array([0.25 * CHORD, 0.0, 0.0]))
        return AerostructuralProblem([wing], Freestream(speed=1.0, alpha=0.0), refs)

    def test_rigid_cambered_wing_matches_vlm(self):
        problem = self.cambered_problem(0.5, 0.25)
        result = solve_aerostructural(problem)
        case = solve_case([c.surface for c in problem.components], problem.freestream, problem.refs)

        assert case.CL > 0.1
        np.testing.assert_allclose(result.nearfield, case.nearfield, rtol=1e-6, atol=1e-10)

    def test_camber_mesh_follows_the_spar(self):
        """
        WHAT: With every node twisted, the boundary-condition normals are
              those of the twisted camber mesh, not of the twisted chord mesh.
        """
        problem = self.cambered_problem(0.01, 0.0005)
        model = problem.models[0]
        disps = np.zeros((model.n_nodes, 6))
        disps[:, 4] = 0.02
        x = problem.layout.join({"wing": np.zeros((5, 10))}, {"wing": disps}, 0.0)

        normals = problem._evaluate(x)["grids"][0][3]
        camber = problem.components[0].surface.camber
        expected = panel_normals(transfer_displacements(disps, model.nodes, camber))
        chord_only = panel_normals(transfer_displacements(disps, model.nodes, problem.meshes[0]))

        np.testing.assert_allclose(normals, expected, rtol=1e-12, atol=1e-15)
        assert np.max(np.abs(normals - chord_only)) > 1e-3

"""
Kinetics model and integrator tests.
"""
import numpy as np
import pytest

from params import Params
from state import State, SPECIES, initial_state, species_index
from model import rhs, integrate, fluxes, time_grid
from processes import hill
from errors import NumericalDivergence


def _run(P, tf=60.0, dt=0.1):
    return integrate(rhs, 0.0, tf, dt, initial_state(P).as_array(), P)


def test_hill_limits():
    assert hill(0.0, 2.0, 3.0) == 0.0
    assert hill(2.0, 2.0, 3.0) == pytest.approx(0.5)
    assert hill(1e6, 2.0, 3.0) == pytest.approx(1.0)
    # solver undershoot below zero reads as no oxygen
    assert hill(-1e-12, 2.0, 2.5) == 0.0


def test_rhs_matches_rate_law(params):
    s = State(trehalose=3.0, glucose=1.5, lactate=4.0, ATP=20.0, oxygen=1.0)
    d = rhs(0.0, s.as_array(), params)

    atp_inh = params.K_atp/(params.K_atp + 20.0)
    g_glc = 1.0/(params.K_oxygen_glucose**params.n_glucose + 1.0)
    g_lac = 1.0/(params.K_oxygen_lactate**params.n_lactate + 1.0)
    v_treh = params.k_trehalose*3.0
    v_glc = params.k_glucose*1.5*atp_inh*g_glc
    v_lac = params.k_lactate*4.0*atp_inh*(params.K_glucose/(params.K_glucose + 1.5))*g_lac

    np.testing.assert_allclose(d, [
        -v_treh,
        -v_glc + 2*v_treh,
        -v_lac,
        0.0,
        -params.k_oxygen_consumption*(v_glc + v_lac),
    ])


def test_coupling_feeds_lactate():
    P = Params(glycolysis_lactate_coupling=0.5)
    s = initial_state(P).as_array()
    F = fluxes(s, P)
    d = rhs(0.0, s, P)
    assert d[species_index("lactate")] == pytest.approx(-F["v_lac"] + 0.5*F["v_glc"])


def test_atp_production_balances_consumption(params):
    F = fluxes(initial_state(params).as_array(), params)
    assert F["atp_production"] > 0
    assert F["atp_production"] == F["atp_consumption"]


def test_time_grid_is_closed():
    T = time_grid(0.0, 60.0, 0.1)
    assert T.size == 601
    assert T[0] == 0.0 and T[-1] == 60.0
    with pytest.raises(ValueError):
        time_grid(0.0, 0.0, 0.1)
    with pytest.raises(ValueError):
        time_grid(0.0, 1.0, -0.1)


@pytest.mark.parametrize("ATP_0,k_o2", [(1.0, 0.0), (60.0, 0.1), (100.0, 0.6)])
def test_atp_stays_constant(ATP_0, k_o2):
    P = Params(ATP_0=ATP_0, k_oxygen_consumption=k_o2)
    T, Y = _run(P)
    atp = Y[:, species_index("ATP")]
    np.testing.assert_allclose(atp, ATP_0, rtol=1e-6)


@pytest.mark.parametrize("k_o2", [0.05, 0.3, 0.6])
def test_trehalose_and_oxygen_never_increase(k_o2):
    P = Params(k_oxygen_consumption=k_o2, ATP_0=10.0)
    T, Y = _run(P)
    for name in ("trehalose", "oxygen"):
        y = Y[:, species_index(name)]
        assert np.all(np.diff(y) <= 1e-9*max(1.0, y[0])), name


def test_glucose_can_rise_from_trehalose():
    P = Params(glucose_0=0.0, k_trehalose=0.1)
    T, Y = _run(P, tf=5.0)
    assert Y[-1, species_index("glucose")] > 0.0


def test_trajectory_shape(params):
    T, Y = _run(params, tf=10.0, dt=0.5)
    assert T.shape == (21,)
    assert Y.shape == (21, len(SPECIES))
    np.testing.assert_allclose(Y[0], initial_state(params).as_array())


def test_finer_solver_tolerance_changes_little(params):
    y0 = initial_state(params).as_array()
    _, Y1 = integrate(rhs, 0.0, 60.0, 0.1, y0, params, rtol=1e-6, atol=1e-9)
    _, Y2 = integrate(rhs, 0.0, 60.0, 0.1, y0, params, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(Y1, Y2, rtol=1e-4, atol=1e-6)


def test_non_finite_derivative_diverges(params):
    def blow_up(t, y, P):
        return np.full_like(y, np.inf)
    with pytest.raises(NumericalDivergence):
        integrate(blow_up, 0.0, 1.0, 0.1, initial_state(params).as_array(), params)


def test_step_budget_is_enforced(params):
    with pytest.raises(NumericalDivergence, match="budget"):
        integrate(rhs, 0.0, 60.0, 0.1, initial_state(params).as_array(), params,
                  max_rhs_evals=5)


def test_non_finite_initial_state(params):
    y0 = initial_state(params).as_array()
    y0[1] = np.nan
    with pytest.raises(NumericalDivergence):
        integrate(rhs, 0.0, 1.0, 0.1, y0, params)

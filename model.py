import logging

import numpy as np
from scipy.integrate import solve_ivp

from params import Params
from errors import NumericalDivergence
from processes import (
    V_trehalose_breakdown, V_glucose_consumption, V_lactate_consumption,
    ATP_production, ATP_consumption, V_oxygen_consumption
)

logger = logging.getLogger(__name__)


def fluxes(s, P: Params):
    """Named process rates at state `s` (works on scalars or along a trajectory)."""
    treh, glc, lac, atp, o2 = s
    v_treh = V_trehalose_breakdown(treh, P)
    v_glc = V_glucose_consumption(glc, atp, o2, P)
    v_lac = V_lactate_consumption(lac, glc, atp, o2, P)
    return {
        "v_treh": v_treh,
        "v_glc": v_glc,
        "v_lac": v_lac,
        "atp_production": ATP_production(v_glc, v_lac, P),
        "atp_consumption": ATP_consumption(v_glc, v_lac, P),
        "v_o2": V_oxygen_consumption(v_glc, v_lac, P),
    }


def rhs(t, s, P: Params):
    F = fluxes(s, P)

    dtreh = -F["v_treh"]
    dglc = -F["v_glc"] + 2.0*F["v_treh"]    # one trehalose -> two glucose
    dlac = -F["v_lac"] + P.glycolysis_lactate_coupling*F["v_glc"]
    datp = F["atp_production"] - F["atp_consumption"]
    do2 = -F["v_o2"]
    return np.array([dtreh, dglc, dlac, datp, do2], dtype=float)


def time_grid(t0, tf, dt):
    if dt <= 0 or tf <= t0:
        raise ValueError(f"invalid time grid: t0={t0}, tf={tf}, dt={dt}")
    n = int(round((tf - t0)/dt)) + 1
    return np.linspace(t0, tf, n)


def integrate(f, t0, tf, dt, y0, P: Params, method="Radau", rtol=1e-8, atol=1e-10,
              max_rhs_evals=200_000):
    """Solve y' = f(t, y, P) and sample it on the closed grid t0..tf with step dt.

    Raises NumericalDivergence when the state or a derivative turns non-finite,
    when `f` is called more than `max_rhs_evals` times, or when the solver
    gives up.
    """
    T = time_grid(t0, tf, dt)
    y0 = np.asarray(y0, dtype=float)
    if not np.all(np.isfinite(y0)):
        raise NumericalDivergence(f"non-finite initial state {y0}")

    calls = 0

    def guarded(t, y):
        nonlocal calls
        calls += 1
        if calls > max_rhs_evals:
            raise NumericalDivergence(
                f"step budget exhausted at t={t:.4g} ({max_rhs_evals} rhs evaluations)")
        dy = f(t, y, P)
        if not np.all(np.isfinite(dy)):
            raise NumericalDivergence(f"non-finite derivative at t={t:.4g}: {dy}")
        return dy

    sol = solve_ivp(guarded, (T[0], T[-1]), y0, method=method, t_eval=T,
                    rtol=rtol, atol=atol)
    if not sol.success:
        raise NumericalDivergence("integration failed: " + sol.message)

    Y = sol.y.T
    if Y.shape[0] != T.size or not np.all(np.isfinite(Y)):
        raise NumericalDivergence("integration returned a non-finite or truncated trajectory")
    logger.debug("integrated %.4g..%.4g with %d rhs calls", T[0], T[-1], calls)
    return T, Y

import numpy as np
from params import Params

#  helpers
def hill(x, K, n):
    """Saturating gate x^n / (K^n + x^n); 0 at x = 0, 1 as x -> inf."""
    x = np.maximum(x, 0.0)
    xn = x**n
    return xn / (K**n + xn)

def atp_inhibition(ATP, P: Params):
    return P.K_atp / (P.K_atp + ATP)

def glucose_inhibition(glucose, P: Params):
    return P.K_glucose / (P.K_glucose + glucose)

def oxygen_gate_glucose(oxygen, P: Params):
    return hill(oxygen, P.K_oxygen_glucose, P.n_glucose)

def oxygen_gate_lactate(oxygen, P: Params):
    return hill(oxygen, P.K_oxygen_lactate, P.n_lactate)

#   substrate unit processes (mM/min)
def V_trehalose_breakdown(trehalose, P: Params):
    return P.k_trehalose * trehalose

def V_glucose_consumption(glucose, ATP, oxygen, P: Params):
    return P.k_glucose * glucose * atp_inhibition(ATP, P) * oxygen_gate_glucose(oxygen, P)

def V_lactate_consumption(lactate, glucose, ATP, oxygen, P: Params):
    return (P.k_lactate * lactate * atp_inhibition(ATP, P)
            * glucose_inhibition(glucose, P) * oxygen_gate_lactate(oxygen, P))

#   energy and oxygen balance
def ATP_production(v_glc, v_lac, P: Params):
    return P.yield_glucose*v_glc + P.yield_lactate*v_lac

def ATP_consumption(v_glc, v_lac, P: Params):
    # steady state: demand matches supply
    return ATP_production(v_glc, v_lac, P)

def V_oxygen_consumption(v_glc, v_lac, P: Params):
    return P.k_oxygen_consumption * (v_glc + v_lac)

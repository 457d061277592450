import numpy as np
from scipy.integrate import trapezoid

from params import Params
from state import SPECIES
from model import fluxes

def auc_trapz(T, y):
    return float(trapezoid(y, T))

def auc_vs_baseline(T, y, baseline=1.0):
    """Net area between y and a constant baseline, divided by the sample count."""
    T = np.asarray(T, dtype=float); y = np.asarray(y, dtype=float)
    if y.size == 0 or T.shape != y.shape:
        raise ValueError("auc_vs_baseline needs matching, non-empty T and y")
    return (auc_trapz(T, y) - auc_trapz(T, np.full_like(y, baseline))) / y.size

def time_of_peak(T, y):
    i = int(np.argmax(y))
    return float(T[i]), float(y[i])

def time_of_min(T, y):
    i = int(np.argmin(y))
    return float(T[i]), float(y[i])

def series_dict(T, Y, P: Params):
    """
    Species and process rates along a trajectory.
    Returns dicts: y (species by name), f (fluxes)
    """
    y = {name: Y[:, i] for i, name in enumerate(SPECIES)}
    f = fluxes(Y.T, P)
    return y, f

def quick_metrics(T, y):
    """A few handy metrics of a normalized response trace."""
    t_peak, peak = time_of_peak(T, y)
    t_min, nadir = time_of_min(T, y)
    return {
        "AUC": auc_vs_baseline(T, y),
        "AUC_raw": auc_trapz(T, y),
        "Peak": peak, "t_peak": t_peak,
        "Nadir": nadir, "t_nadir": t_min,
        "End": float(y[-1]),
    }

# utils.py
import os
import numpy as np

def ensure_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path

def value_at(t_query, T, series) -> float:
    """Return value of `series` at time closest to t_query."""
    return float(series[np.argmin(np.abs(np.asarray(T) - t_query))])

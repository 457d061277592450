from dataclasses import replace

import numpy as np
from params import Params

# (weight, low, high): mostly slow oxygen users, a minority of fast ones
K_OXYGEN_MIXTURE = ((0.8, 0.0, 0.2), (0.2, 0.2, 0.6))
ATP_RANGE = (1, 100)


def mixture_uniform(rng: np.random.Generator, components, size=None):
    """Draw from a mixture of uniform distributions.

    components: sequence of (weight, low, high). A component is picked with
    probability `weight`, then the value is uniform on [low, high).
    """
    w = np.array([c[0] for c in components], dtype=float)
    lo = np.array([c[1] for c in components], dtype=float)
    hi = np.array([c[2] for c in components], dtype=float)
    if np.any(w < 0) or not np.isclose(w.sum(), 1.0):
        raise ValueError(f"mixture weights must be non-negative and sum to 1, got {w}")
    if np.any(hi < lo):
        raise ValueError("mixture component with high < low")

    which = rng.choice(len(w), size=size, p=w)
    u = rng.uniform(lo[which], hi[which])
    return float(u) if size is None else u


def sample_atp(rng: np.random.Generator) -> float:
    lo, hi = ATP_RANGE
    return float(rng.integers(lo, hi, endpoint=True))


def sample_k_oxygen(rng: np.random.Generator) -> float:
    return mixture_uniform(rng, K_OXYGEN_MIXTURE)


def sample_params(base: Params, rng: np.random.Generator) -> Params:
    """One trial's parameter set: ATP level and oxygen use vary, the rest is shared."""
    return replace(base, ATP_0=sample_atp(rng), k_oxygen_consumption=sample_k_oxygen(rng))

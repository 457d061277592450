import numpy as np


def add_noise(y, rng: np.random.Generator, noise_level=0.005):
    """Gaussian measurement noise with sd = noise_level * max(y)."""
    y = np.asarray(y, dtype=float)
    if noise_level < 0:
        raise ValueError(f"noise_level must be >= 0, got {noise_level}")
    if y.size == 0:
        raise ValueError("cannot add noise to an empty trace")
    sigma = noise_level*float(np.max(y))
    return y + rng.normal(0.0, abs(sigma), size=y.shape)

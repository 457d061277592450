import numpy as np
import pytest

from analytics import auc_trapz, auc_vs_baseline, quick_metrics, series_dict
from noise import add_noise
from params import Params
from state import SPECIES, initial_state


def test_auc_of_baseline_is_zero():
    T = np.linspace(0.0, 40.0, 401)
    assert auc_vs_baseline(T, np.ones_like(T)) == 0.0


@pytest.mark.parametrize("d", [0.25, -0.1, 2.0])
def test_auc_of_uniform_offset(d):
    T = np.linspace(0.0, 40.0, 401)
    y = 1.0 + np.full_like(T, d)
    assert auc_vs_baseline(T, y) == pytest.approx(d*40.0/401)


def test_auc_trapz_linear():
    T = np.linspace(0.0, 2.0, 21)
    assert auc_trapz(T, T) == pytest.approx(2.0)


def test_auc_rejects_empty():
    with pytest.raises(ValueError):
        auc_vs_baseline(np.array([]), np.array([]))


def test_noise_scale_and_seed():
    y = np.full(20_000, 2.0)
    a = add_noise(y, np.random.default_rng(1), noise_level=0.005)
    b = add_noise(y, np.random.default_rng(1), noise_level=0.005)
    np.testing.assert_array_equal(a, b)
    assert np.std(a - y) == pytest.approx(0.01, rel=0.05)
    assert abs(np.mean(a - y)) < 1e-3


def test_zero_noise_level_is_identity():
    y = np.linspace(1.0, 2.0, 50)
    np.testing.assert_array_equal(add_noise(y, np.random.default_rng(0), 0.0), y)


def test_noise_rejects_negative_level():
    with pytest.raises(ValueError):
        add_noise(np.ones(3), np.random.default_rng(0), -0.1)


def test_series_dict_names_species_and_fluxes():
    P = Params()
    Y = np.tile(initial_state(P).as_array(), (4, 1))
    y, f = series_dict(np.arange(4.0), Y, P)
    assert set(y) == set(SPECIES)
    assert f["v_glc"].shape == (4,)
    np.testing.assert_allclose(f["atp_production"], f["atp_consumption"])


def test_quick_metrics():
    T = np.linspace(0.0, 10.0, 11)
    y = np.ones_like(T); y[3] = 2.0; y[7] = 0.5
    m = quick_metrics(T, y)
    assert (m["Peak"], m["t_peak"]) == (2.0, 3.0)
    assert (m["Nadir"], m["t_nadir"]) == (0.5, 7.0)
    assert m["End"] == 1.0

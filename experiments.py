import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from params import Params, RunConfig
from state import species_index
from errors import NumericalDivergence
from phases import simulate_protocol, stimulus_time
from sampler import sample_params
from fitting import FitResult, extract_window, normalize
from noise import add_noise
from analytics import auc_vs_baseline

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["ATP", "k_oxygen_consumption", "fitted_k", "AUC"]


@dataclass
class TrialRecord:
    trial: int
    ATP: float
    k_oxygen_consumption: float
    fitted_k: float
    AUC: float
    fit_model: str
    time: np.ndarray = field(repr=False)
    raw: np.ndarray = field(repr=False)
    normalized: np.ndarray = field(repr=False)


@dataclass
class TrialResults:
    summary: pd.DataFrame
    raw: pd.DataFrame
    normalized: pd.DataFrame
    failures: List[Tuple[int, str]]


def response_window_start(cfg: RunConfig) -> float:
    if cfg.window_start is not None:
        return cfg.window_start
    return max(stimulus_time(cfg) - cfg.fit_window, 0.0)


def response_window(P: Params, cfg: RunConfig):
    """Simulate the protocol and cut the observable's response window."""
    T, Y = simulate_protocol(P, cfg)
    obs = Y[:, species_index(cfg.observable)]
    return extract_window(T, obs, response_window_start(cfg), cfg.window_length)


def run_trial(P: Params, cfg: RunConfig, rng_noise: np.random.Generator, trial=0,
              allow_asymptotic=False) -> TrialRecord:
    X, Y = response_window(P, cfg)
    Y3, _, fit = normalize(X, Y, cfg.fit_window, allow_asymptotic=allow_asymptotic)
    Yn = add_noise(Y3, rng_noise, cfg.noise_level)
    return TrialRecord(
        trial=trial,
        ATP=P.ATP_0,
        k_oxygen_consumption=P.k_oxygen_consumption,
        fitted_k=fit.k if fit.ok else np.nan,
        AUC=auc_vs_baseline(X, Yn),
        fit_model=fit.model,
        time=X, raw=Y, normalized=Yn,
    )


def trial_streams(seed, repeats):
    """Independent (parameter, noise) generators per trial, fixed by seed and trial index."""
    streams = []
    for child in np.random.SeedSequence(seed).spawn(repeats):
        s_params, s_noise = child.spawn(2)
        streams.append((np.random.default_rng(s_params), np.random.default_rng(s_noise)))
    return streams


def _sampled_trial(base: Params, cfg: RunConfig, trial: int, rng_params, rng_noise):
    P = sample_params(base, rng_params)
    try:
        return run_trial(P, cfg, rng_noise, trial=trial)
    except NumericalDivergence as e:
        logger.warning("trial %d failed (ATP=%g, k_oxygen_consumption=%.4f): %s",
                       trial, P.ATP_0, P.k_oxygen_consumption, e)
        return trial, str(e)


def collect(outcomes) -> TrialResults:
    """Merge per-trial outcomes (records or (trial, message) failures) in trial order."""
    records = sorted((o for o in outcomes if isinstance(o, TrialRecord)), key=lambda r: r.trial)
    failures = sorted(o for o in outcomes if not isinstance(o, TrialRecord))

    summary = pd.DataFrame(
        [[getattr(r, c) for c in SUMMARY_COLUMNS] for r in records],
        columns=SUMMARY_COLUMNS,
        index=pd.Index([r.trial for r in records], name="trial"),
    )
    time = records[0].time if records else np.array([])
    raw = pd.DataFrame({"time": time, **{f"trial_{r.trial}": r.raw for r in records}})
    normalized = pd.DataFrame({"time": time, **{f"trial_{r.trial}": r.normalized for r in records}})
    return TrialResults(summary, raw, normalized, failures)


def run_trials(base: Params, cfg: RunConfig, executor=None) -> TrialResults:
    """Sample, simulate, normalize and score `cfg.repeats` independent trials.

    `executor` is any concurrent.futures.Executor; without one trials run in
    this thread. Output does not depend on how trials are scheduled.
    """
    streams = trial_streams(cfg.seed, cfg.repeats)
    if executor is None:
        outcomes = [_sampled_trial(base, cfg, i, rp, rn) for i, (rp, rn) in enumerate(streams)]
    else:
        futures = [executor.submit(_sampled_trial, base, cfg, i, rp, rn)
                   for i, (rp, rn) in enumerate(streams)]
        outcomes = [f.result() for f in futures]

    results = collect(outcomes)
    logger.info("%d/%d trials succeeded", len(results.summary), cfg.repeats)
    return results


@dataclass
class DeterministicRun:
    T: np.ndarray
    Y: np.ndarray
    X: np.ndarray
    raw: np.ndarray
    reference: np.ndarray
    normalized: np.ndarray
    fit: FitResult
    AUC: float
    stimulus: float        # phase C onset, trajectory time
    window_start: float


def simulate_deterministic(P: Params, cfg: Optional[RunConfig] = None, include_phase_a=True):
    """Single noise-free trace, keeping the priming phase and the asymptotic fallback."""
    cfg = replace(cfg or RunConfig(), include_phase_a=include_phase_a)
    T, Y = simulate_protocol(P, cfg)
    obs = Y[:, species_index(cfg.observable)]
    X, raw = extract_window(T, obs, response_window_start(cfg), cfg.window_length)
    Y3, Y2, fit = normalize(X, raw, cfg.fit_window, allow_asymptotic=True)
    return DeterministicRun(T, Y, X, raw, Y2, Y3, fit, auc_vs_baseline(X, Y3),
                            stimulus_time(cfg), response_window_start(cfg))


def sensitivity_grid(base: Params, cfg: RunConfig, atp_values, k_o2_values, seed=None):
    """
    AUC over a grid of fixed (ATP_0, k_oxygen_consumption) values.
    Z[j, i] belongs to atp_values[i], k_o2_values[j]; failed cells are NaN.
    """
    atp_values = np.asarray(atp_values, dtype=float)
    k_o2_values = np.asarray(k_o2_values, dtype=float)
    Z = np.full((k_o2_values.size, atp_values.size), np.nan)
    streams = trial_streams(seed, Z.size)

    for j, kv in enumerate(k_o2_values):
        for i, av in enumerate(atp_values):
            P = replace(base, ATP_0=float(av), k_oxygen_consumption=float(kv))
            _, rng_noise = streams[j*atp_values.size + i]
            try:
                Z[j, i] = run_trial(P, cfg, rng_noise).AUC
            except NumericalDivergence as e:
                logger.warning("grid cell ATP=%g k_oxygen_consumption=%g failed: %s", av, kv, e)
    return Z

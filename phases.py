"""
Three-phase protocol.

  A  fresh initial state
  B  continues from A; ATP reset
  C  continues from B; trehalose, oxygen and ATP reset (replenishment)

Each phase runs for `phase_duration` and continues absolute time. The
concatenated trace either keeps all three phases (A+B+C, 0..3T) or drops the
priming phase (B+C, 0..2T), selected by `RunConfig.include_phase_a`.
"""
from dataclasses import dataclass

import numpy as np

from params import Params, RunConfig
from state import State, initial_state
from model import rhs, integrate

PHASES = ("A", "B", "C")

# species put back to their initial constant at the start of each phase
RESETS = {
    "B": ("ATP",),
    "C": ("trehalose", "oxygen", "ATP"),
}


@dataclass
class PhaseRun:
    name: str
    T: np.ndarray
    Y: np.ndarray

    def final_state(self) -> State:
        return State.from_array(self.Y[-1])


def handoff(name: str, previous: State, P: Params) -> State:
    return previous.reset(P, *RESETS[name])


def run_phases(P: Params, cfg: RunConfig):
    runs = []
    s = initial_state(P)
    t0 = 0.0
    for name in PHASES:
        if runs:
            s = handoff(name, runs[-1].final_state(), P)
        T, Y = integrate(rhs, t0, t0 + cfg.phase_duration, cfg.dt, s.as_array(), P,
                         method=cfg.method, rtol=cfg.rtol, atol=cfg.atol,
                         max_rhs_evals=cfg.max_rhs_evals)
        runs.append(PhaseRun(name, T, Y))
        t0 = T[-1]
    return runs


def chain(runs, include_phase_a: bool):
    """Concatenate phase runs on one continuous grid starting at 0.

    The first sample of every later phase coincides in time with the last
    sample of the phase before it and is dropped.
    """
    kept = runs if include_phase_a else [r for r in runs if r.name != "A"]
    if not kept:
        raise ValueError("no phases to concatenate")
    Y = np.vstack([kept[0].Y] + [r.Y[1:] for r in kept[1:]])
    T = np.concatenate([kept[0].T] + [r.T[1:] for r in kept[1:]]) - kept[0].T[0]
    return T, Y


def stimulus_time(cfg: RunConfig) -> float:
    """Onset of phase C in the re-indexed time of the concatenated trace."""
    n_before = 2 if cfg.include_phase_a else 1
    return n_before * cfg.phase_duration


def simulate_protocol(P: Params, cfg: RunConfig):
    runs = run_phases(P, cfg)
    return chain(runs, cfg.include_phase_a)

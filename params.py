import math
import numbers
from dataclasses import dataclass, fields
from typing import Optional

# Hill coefficients and half-saturation constants must be strictly positive
_POSITIVE = ("K_atp", "K_glucose", "K_oxygen_glucose", "n_glucose",
             "K_oxygen_lactate", "n_lactate")


@dataclass(frozen=True)
class Params:
    # substrate conversion (1/min)
    k_trehalose: float = 0.02
    k_glucose: float = 0.15
    k_lactate: float = 0.08

    # feedback inhibition (mM)
    K_atp: float = 40.0        # ATP inhibits glucose and lactate uptake
    K_glucose: float = 0.5     # glucose is consumed before lactate

    # oxygen gating, Hill form
    K_oxygen_glucose: float = 0.5; n_glucose: float = 2.0
    K_oxygen_lactate: float = 2.0; n_lactate: float = 4.0

    # ATP yield per substrate flux
    yield_glucose: float = 2.0
    yield_lactate: float = 14.0

    # oxygen used per unit of substrate flux
    k_oxygen_consumption: float = 0.1

    # glycolysis -> LDH (lactate produced per glucose consumed)
    glycolysis_lactate_coupling: float = 0.0

    # initial constants (mM)
    trehalose_0: float = 5.0
    glucose_0: float = 2.0
    lactate_0: float = 5.0
    ATP_0: float = 60.0
    oxygen_0: float = 20.0

    def __post_init__(self):
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, bool) or not isinstance(v, numbers.Real):
                raise ValueError(f"Params.{f.name} must be a real number, got {v!r}")
            if not math.isfinite(v):
                raise ValueError(f"Params.{f.name} must be finite, got {v!r}")
            if f.name in _POSITIVE:
                if v <= 0:
                    raise ValueError(f"Params.{f.name} must be > 0, got {v!r}")
            elif v < 0:
                raise ValueError(f"Params.{f.name} must be >= 0, got {v!r}")


@dataclass(frozen=True)
class RunConfig:
    """Protocol and pipeline settings shared by every trial of a run."""
    # time grid (min)
    dt: float = 0.1
    phase_duration: float = 60.0
    include_phase_a: bool = False

    # response window, in re-indexed time of the concatenated trace
    observable: str = "glucose"
    window_start: Optional[float] = None   # None: onset of last phase minus fit_window
    window_length: float = 40.0
    fit_window: float = 10.0

    # measurement noise, as a fraction of the trace maximum
    noise_level: float = 0.005

    repeats: int = 300
    seed: Optional[int] = None

    # solver
    method: str = "Radau"
    rtol: float = 1e-8
    atol: float = 1e-10
    max_rhs_evals: int = 200_000

    def __post_init__(self):
        from state import SPECIES
        if self.dt <= 0 or self.phase_duration <= 0:
            raise ValueError("dt and phase_duration must be > 0")
        if self.dt > self.phase_duration:
            raise ValueError("dt must not exceed phase_duration")
        if self.observable not in SPECIES:
            raise ValueError(f"unknown observable {self.observable!r}; expected one of {SPECIES}")
        if self.window_length <= 0 or self.fit_window <= 0:
            raise ValueError("window_length and fit_window must be > 0")
        if self.fit_window > self.window_length:
            raise ValueError("fit_window must lie inside the response window")
        if self.window_start is not None and self.window_start < 0:
            raise ValueError("window_start must be >= 0")
        if self.noise_level < 0:
            raise ValueError("noise_level must be >= 0")
        if self.repeats < 1:
            raise ValueError("repeats must be >= 1")
        if self.max_rhs_evals < 1:
            raise ValueError("max_rhs_evals must be >= 1")

# state.py
from dataclasses import dataclass, fields, replace

import numpy as np
from params import Params

# solver vector order
SPECIES = ("trehalose", "glucose", "lactate", "ATP", "oxygen")


@dataclass(frozen=True)
class State:
    trehalose: float
    glucose: float
    lactate: float
    ATP: float
    oxygen: float

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in SPECIES], dtype=float)

    @classmethod
    def from_array(cls, y) -> "State":
        y = np.asarray(y, dtype=float)
        if y.shape != (len(SPECIES),):
            raise ValueError(f"expected a vector of {len(SPECIES)} species, got shape {y.shape}")
        return cls(**{name: float(v) for name, v in zip(SPECIES, y)})

    def reset(self, P: Params, *names: str) -> "State":
        """Copy of this state with `names` set back to their initial constants."""
        unknown = set(names) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"unknown species: {sorted(unknown)}")
        return replace(self, **{name: getattr(P, f"{name}_0") for name in names})


def initial_state(P: Params) -> State:
    return State(
        trehalose=P.trehalose_0,
        glucose=P.glucose_0,
        lactate=P.lactate_0,
        ATP=P.ATP_0,
        oxygen=P.oxygen_0,
    )


def species_index(name: str) -> int:
    return SPECIES.index(name)

from dataclasses import replace

from params import Params

def build_control() -> Params:
    return Params()

def build_hypoxic() -> Params:
    P = Params()
    # little oxygen to start with, drawn down fast
    return replace(P, oxygen_0=2.0, k_oxygen_consumption=0.4)

def build_coupled() -> Params:
    P = Params()
    # half of the glucose flux ends up as lactate (glycolysis -> LDH)
    return replace(P, glycolysis_lactate_coupling=0.5)

SCENARIOS = {
    "control": build_control,
    "hypoxic": build_hypoxic,
    "coupled": build_coupled,
}

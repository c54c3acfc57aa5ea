"""Fatal errors raised by the simulation engine.

Out-of-range user input never raises: the normalizer absorbs it. The
exceptions below mean the engine itself produced something impossible, either
because of a bug in the allocation logic or because a pathological loan slipped
past normalisation. Callers must not render anything when one is raised.
"""


class SimulationError(RuntimeError):
    """Base class for fatal simulation failures."""


class SafetyCapExceeded(SimulationError):
    """A simulation ran for the maximum number of months without paying off."""

    def __init__(self, label: str, months: int) -> None:
        super().__init__(f"{label} simulation exceeded safety cap of {months} months")
        self.label = label
        self.months = months


class InvariantViolation(SimulationError):
    """A finished simulation broke one of the engine's numerical invariants."""

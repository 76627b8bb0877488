"""Append-only recorder for derivation steps."""

from typing import Iterable, Optional

from mathcore.models import OperationKind, SolutionStep


class StepTrace:
    """Collects :class:`SolutionStep` records in chronological order."""

    def __init__(self, steps: Iterable[SolutionStep] = ()):
        self._steps: list[SolutionStep] = list(steps)

    def add(self, id: str, description: str, operation: OperationKind,
            before: str, after: str, explanation: str = "") -> SolutionStep:
        step = SolutionStep(id, description, operation, before, after, explanation)
        self._steps.append(step)
        return step

    def extend(self, steps: Iterable[SolutionStep]) -> None:
        self._steps.extend(steps)

    @property
    def steps(self) -> tuple:
        return tuple(self._steps)

    @property
    def last(self) -> Optional[SolutionStep]:
        return self._steps[-1] if self._steps else None

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)

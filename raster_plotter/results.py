"""Stage results -- success value or tagged failure.

Every algorithmic stage of the pipeline (extraction, stitching, emission)
returns a ``StageResult``.  On failure the result still carries a *safe*
value (an empty list, a placeholder program) so downstream stages keep
running, plus a ``StageFailure`` describing what went wrong.  Callers
decide whether to surface the message, fall back, or ``unwrap()``.

Only the stage wrappers convert exceptions; the raw stage functions raise
normally.
"""

from __future__ import annotations

import enum
import logging
import traceback
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureKind(str, enum.Enum):
    """Which stage (or precondition) failed."""

    EXTRACTION = "extraction"
    STITCHING = "stitching"
    EMISSION = "emission"
    NO_TRACED_PATHS = "no_traced_paths"


class StageError(Exception):
    """Raised by ``StageResult.unwrap()`` when the stage failed."""

    def __init__(self, failure: StageFailure) -> None:
        super().__init__(f"{failure.kind.value}: {failure.message}")
        self.failure = failure


@dataclass(frozen=True, slots=True)
class StageFailure:
    """Why a stage failed.

    Parameters
    ----------
    kind : FailureKind
        Failing stage or precondition.
    message : str
        Human-readable status line.
    detail : str
        Full diagnostic (formatted traceback), empty for preconditions.
    """

    kind: FailureKind
    message: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class StageResult(Generic[T]):
    """Value produced by a stage, with an optional failure tag."""

    value: T
    failure: StageFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> T:
        """Return the value, or raise ``StageError`` if the stage failed."""
        if self.failure is not None:
            raise StageError(self.failure)
        return self.value


def contain(
    kind: FailureKind,
    fallback: T,
    fn: Callable[..., T],
    *args,
) -> StageResult[T]:
    """Run ``fn(*args)`` and turn any exception into a tagged failure.

    Parameters
    ----------
    kind : FailureKind
        Stage tag recorded on failure.
    fallback : T
        Safe value returned when ``fn`` raises.
    fn : Callable
        Raw stage function.

    Returns
    -------
    StageResult[T]
        ``StageResult(fn(*args))`` on success, otherwise
        ``StageResult(fallback, StageFailure(...))``.
    """
    try:
        return StageResult(fn(*args))
    except Exception as exc:
        logger.exception("%s stage failed: %s", kind.value, exc)
        failure = StageFailure(
            kind=kind,
            message=f"Error: {exc}",
            detail=traceback.format_exc(),
        )
        return StageResult(fallback, failure)

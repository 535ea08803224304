"""Pipeline stage definitions.

A build is an ordered list of named stages. Each stage carries a failure
policy:

- FATAL: a failure aborts the build
- DEGRADED: a failure is reported and the build continues
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ..config import BuildConfig
    from .orchestrator import BuildContext


class BuildStageError(Exception):
    """Base class for stage failures.

    Attributes:
        output: Captured output of the external tool that failed (may be empty)
    """

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class StagePolicy(Enum):
    """How the orchestrator reacts to a stage failure."""

    FATAL = "fatal"
    DEGRADED = "degraded"


def _always(config: "BuildConfig") -> bool:
    return True


@dataclass(frozen=True)
class PipelineStage:
    """A named step of the build pipeline."""

    name: str
    run: Callable[["BuildContext"], None]
    policy: StagePolicy = StagePolicy.FATAL
    enabled: Callable[["BuildConfig"], bool] = _always

    @property
    def is_fatal(self) -> bool:
        return self.policy is StagePolicy.FATAL

"""Result types for fallible pipeline stages.

Every stage that talks to the network returns ``Ok`` or ``Err`` instead of
raising, so callers decide explicitly how a failure degrades.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure classes and the HTTP status they surface as."""

    INPUT_INVALID = "input_invalid"
    NOT_FOUND = "not_found"
    UPSTREAM_FAILURE = "upstream_failure"
    EPISODE_FAILURE = "episode_failure"

    @property
    def http_status(self) -> int:
        return {
            ErrorKind.INPUT_INVALID: 400,
            ErrorKind.NOT_FOUND: 404,
        }.get(self, 500)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status_code: int | None = None
    # Extra keys merged into the error response body
    extra: dict[str, Any] = field(default_factory=dict)
    # Whether the error body carries ``"success": false``
    flagged: bool = False


Result = Union[Ok[T], Err]

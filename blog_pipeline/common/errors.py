"""Error types and tagged stage results for the publishing pipeline."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(PipelineError):
    """Raised when a required credential or setting is missing."""


class ParseError(PipelineError):
    """Raised when a text-generation response cannot be parsed.

    Attributes:
        raw_text: The unparsed model output
    """

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class ExternalServiceError(PipelineError):
    """Raised on a non-2xx or malformed response from an external API.

    Attributes:
        service: Name of the service that failed (e.g. "elevenlabs")
        status_code: HTTP status code, if there was one
        body: Response body, truncated for logging
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        detail = f"{service}: {message}"
        if status_code is not None:
            detail = f"{service}: HTTP {status_code} - {message}"
        super().__init__(detail)
        self.service = service
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage result."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """Failed stage result.

    Attributes:
        stage: Name of the stage that failed
        error: The error that stopped it
    """

    stage: str
    error: Exception

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


StageResult = Union[Ok[T], Failure]

"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful stage result."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed stage result."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True


Result = Ok[T] | Err[E]


def from_optional(value: T | None, make_error: Callable[[], E]) -> Ok[T] | Err[E]:
    """Turn an optional value into a result, building the error only when needed."""
    if value is None:
        return Err(make_error())
    return Ok(value)


@dataclass(frozen=True, slots=True)
class PipelineError:
    """Base of every error a pipeline stage can return."""

    message: str

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True, slots=True)
class FetchError(PipelineError):
    """Transport failure, non-2xx status or undecodable body."""

    uri: str = ""


@dataclass(frozen=True, slots=True)
class FieldError:
    """One violated field: dotted location plus the validator's message."""

    location: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationError(PipelineError):
    """Payload did not match the expected schema."""

    fields: tuple[FieldError, ...] = ()

    @property
    def locations(self) -> list[str]:
        return [f.location for f in self.fields]


@dataclass(frozen=True, slots=True)
class NoDescribedByLinkError(PipelineError):
    """Link header parsed but held no describedby application/ld+json entry."""


@dataclass(frozen=True, slots=True)
class EmptyCollectionError(PipelineError):
    """DocMap array was fetched and valid but empty."""


@dataclass(frozen=True, slots=True)
class LinkEntry:
    """One entry of an HTTP Link header."""

    uri: str
    rel: str
    type: str
    profile: str | None = None

    @property
    def rels(self) -> list[str]:
        # rel may carry several space-separated relation types
        return self.rel.lower().split()


DEFAULT_DEBUG_LEVELS: frozenset[int] = frozenset({0, 1})


@dataclass(frozen=True, slots=True)
class ProgramConfig:
    """One batch item: the notification to resolve and its debug levels."""

    uri: str
    debug: frozenset[int] = field(default=DEFAULT_DEBUG_LEVELS)


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    """Result of one batch item, keyed by its notification URI."""

    item: str
    result: Ok[Any] | Err[PipelineError]

    @property
    def succeeded(self) -> bool:
        return self.result.is_ok()

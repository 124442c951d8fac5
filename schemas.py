"""Schemas for the payloads met along the pipeline, and a non-raising decoder."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from models import Err, FieldError, Ok, ValidationError

T = TypeVar("T")


class _Schema(BaseModel):
    # strict: no coercion, so "1" never passes for 1 and literals match exactly
    model_config = ConfigDict(strict=True, frozen=True)


class NotificationObject(_Schema):
    id: str


class Notification(_Schema):
    """COAR notification; ``object.id`` is the announcement-action URI."""

    object: NotificationObject


class LinkHeaders(_Schema):
    """Response headers of the announcement action; only ``link`` is required."""

    link: str


class Doi(_Schema):
    doi: str


class ActionOutput(_Schema):
    doi: str
    type: str
    published: str


class Action(_Schema):
    inputs: list[Doi]
    outputs: list[ActionOutput]


class Step(_Schema):
    inputs: list[Doi]
    actions: list[Action]
    previous_step: str | None = Field(default=None, alias="previous-step")
    next_step: str | None = Field(default=None, alias="next-step")


class Publisher(_Schema):
    name: str
    url: str


class DocMap(_Schema):
    """A DocMap document: publisher metadata plus the named editorial steps."""

    type: Literal["docmap"]
    id: str
    publisher: Publisher
    created: str
    updated: str
    first_step: str = Field(alias="first-step")
    steps: dict[str, Step]
    context: str = Field(alias="@context")


DOCMAPS = list[DocMap]


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter[Any]:
    return TypeAdapter(schema)


def _location(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def decode(schema: type[T] | Any, payload: Any) -> Ok[T] | Err[ValidationError]:
    """Validate ``payload`` against ``schema``.

    Returns ``Ok`` with the typed value, or ``Err(ValidationError)`` listing every
    violated field in validator order. Never raises for a payload mismatch.
    """
    try:
        value = _adapter(schema).validate_python(payload)
    except pydantic.ValidationError as exc:
        fields = tuple(
            FieldError(location=_location(error["loc"]), message=error["msg"])
            for error in exc.errors()
        )
        summary = "; ".join(f"{f.location}: {f.message}" for f in fields)
        name = getattr(schema, "__name__", str(schema))
        return Err(ValidationError(message=f"{name} did not match: {summary}", fields=fields))
    return Ok(value)

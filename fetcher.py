"""HTTP fetch helpers that turn every transport failure into a FetchError value."""

from __future__ import annotations

import logging
from typing import Any, Literal

import requests

from models import Err, FetchError, Ok

REQUEST_TIMEOUT_SECONDS = 20

LOGGER = logging.getLogger(__name__)

Method = Literal["GET", "HEAD"]


def fetch(method: Method, uri: str) -> Ok[Any] | Err[FetchError]:
    """Issue one request and return its payload.

    GET yields the decoded JSON body. HEAD yields the response headers as a plain
    dict with lower-cased names. DNS/connection errors, timeouts, non-2xx statuses
    and bodies that are not JSON all come back as ``Err(FetchError)``.
    """
    LOGGER.debug("%s %s", method, uri)
    try:
        if method == "GET":
            response = requests.get(
                uri,
                headers={"Accept": "application/json, application/ld+json"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            try:
                return Ok(response.json())
            except ValueError as exc:
                return Err(FetchError(message=f"Invalid JSON body: {exc}", uri=uri))
        if method == "HEAD":
            response = requests.head(uri, allow_redirects=True, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            return Ok({name.lower(): value for name, value in response.headers.items()})
    except requests.RequestException as exc:
        return Err(FetchError(message=str(exc), uri=uri))

    raise ValueError(f"Unsupported method: {method}")


def get_json(uri: str) -> Ok[Any] | Err[FetchError]:
    return fetch("GET", uri)


def head(uri: str) -> Ok[Any] | Err[FetchError]:
    return fetch("HEAD", uri)

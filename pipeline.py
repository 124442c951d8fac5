"""Resolve COAR notifications to the DocMaps they announce.

Each run is strictly sequential:

    notification (GET) -> announcement action (HEAD, Link header)
        -> signposting URI -> DocMap array (GET) -> first DocMap

and stops at the first failing step. ``run_batch`` runs many notifications
concurrently and collects every outcome; one item failing never stops another.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

import fetcher
from debug_log import LEVEL_DOCUMENT, LEVEL_STEPS, LEVEL_TRACE, DebugLog
from link_header import resolve_signposting_uri
from models import (
    BatchOutcome,
    EmptyCollectionError,
    Err,
    Ok,
    PipelineError,
    ProgramConfig,
    from_optional,
)
from schemas import DOCMAPS, DocMap, LinkHeaders, Notification, decode

LOGGER = logging.getLogger(__name__)


class _Trace:
    """Debug recorder bound to one batch item and its enabled levels."""

    def __init__(self, config: ProgramConfig, debug_log: DebugLog) -> None:
        self._config = config
        self._log = debug_log

    def __call__(self, level: int, message: str, data: Any = None) -> None:
        if level in self._config.debug:
            self._log.record(level, self._config.uri, message, data)


async def _get_json(uri: str) -> Ok[Any] | Err[PipelineError]:
    return await asyncio.to_thread(fetcher.get_json, uri)


async def _head(uri: str) -> Ok[Any] | Err[PipelineError]:
    return await asyncio.to_thread(fetcher.head, uri)


async def fetch_announcement_uri(notification_uri: str) -> Ok[str] | Err[PipelineError]:
    """GET the notification and return its ``object.id``."""
    payload = await _get_json(notification_uri)
    if isinstance(payload, Err):
        return payload
    notification = decode(Notification, payload.value)
    if isinstance(notification, Err):
        return notification
    return Ok(notification.value.object.id)


async def fetch_signposting_uri(announcement_uri: str) -> Ok[str] | Err[PipelineError]:
    """HEAD the announcement action and pick the DocMap URI out of its Link header."""
    headers = await _head(announcement_uri)
    if isinstance(headers, Err):
        return headers
    link_headers = decode(LinkHeaders, headers.value)
    if isinstance(link_headers, Err):
        return link_headers
    return resolve_signposting_uri(link_headers.value.link)


async def fetch_first_docmap(signposting_uri: str) -> Ok[DocMap] | Err[PipelineError]:
    """GET the DocMap array and return its first element."""
    payload = await _get_json(signposting_uri)
    if isinstance(payload, Err):
        return payload
    docmaps = decode(DOCMAPS, payload.value)
    if isinstance(docmaps, Err):
        return docmaps
    return from_optional(
        docmaps.value[0] if docmaps.value else None,
        lambda: EmptyCollectionError(message=f"DocMap array at {signposting_uri} is empty"),
    )


def summarize_steps(docmap: DocMap) -> list[dict[str, Any]]:
    """Digest of each step: neighbours, action DOIs and output types."""
    summary = []
    for name, step in docmap.steps.items():
        entry: dict[str, Any] = {"step": name}
        if step.previous_step:
            entry["previous-step"] = step.previous_step
        if step.next_step:
            entry["next-step"] = step.next_step
        entry["actions"] = [
            {
                "inputs": [{"doi": i.doi} for i in action.inputs],
                "outputs": [{"doi": o.doi, "type": o.type} for o in action.outputs],
            }
            for action in step.actions
        ]
        entry["inputs"] = [{"doi": i.doi} for i in step.inputs]
        summary.append(entry)
    return summary


async def resolve_docmap(
    config: ProgramConfig,
    debug_log: DebugLog | None = None,
) -> Ok[DocMap] | Err[PipelineError]:
    """Run one notification through every step, stopping at the first error."""
    trace = _Trace(config, debug_log if debug_log is not None else DebugLog())

    trace(LEVEL_TRACE, "Retrieve DocMap url from notification", config.uri)
    announcement_uri = await fetch_announcement_uri(config.uri)
    if isinstance(announcement_uri, Err):
        return announcement_uri

    trace(LEVEL_TRACE, "Step 1: retrieved evaluation url", announcement_uri.value)
    signposting_uri = await fetch_signposting_uri(announcement_uri.value)
    if isinstance(signposting_uri, Err):
        return signposting_uri

    trace(LEVEL_TRACE, "Step 2: retrieved DocMap url", signposting_uri.value)
    docmap = await fetch_first_docmap(signposting_uri.value)
    if isinstance(docmap, Err):
        return docmap

    trace(LEVEL_STEPS, "DocMap steps", summarize_steps(docmap.value))
    trace(LEVEL_DOCUMENT, "DocMap", docmap.value.model_dump(mode="json", by_alias=True))
    return docmap


async def _run_item(config: ProgramConfig, debug_log: DebugLog) -> BatchOutcome:
    result = await resolve_docmap(config, debug_log)
    debug_log.flush(config.uri)
    if isinstance(result, Err):
        LOGGER.warning("Failed resolving %s: %s", config.uri, result.error)
    else:
        LOGGER.info("Resolved %s -> %s", config.uri, result.value.id)
    return BatchOutcome(item=config.uri, result=result)


async def run_batch(
    configs: Iterable[ProgramConfig],
    debug_log: DebugLog | None = None,
) -> list[BatchOutcome]:
    """Resolve every config concurrently; outcomes come back in input order."""
    debug_log = debug_log if debug_log is not None else DebugLog()
    outcomes = await asyncio.gather(*(_run_item(config, debug_log) for config in configs))

    failed = sum(1 for outcome in outcomes if not outcome.succeeded)
    LOGGER.info("Batch complete. resolved=%s failed=%s", len(outcomes) - failed, failed)
    return list(outcomes)

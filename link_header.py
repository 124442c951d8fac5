"""Parsing of HTTP ``Link`` headers (RFC 8288) for signposting discovery."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator

from models import Err, LinkEntry, NoDescribedByLinkError, Ok

DESCRIBED_BY_REL = "describedby"
JSON_LD_TYPE = "application/ld+json"

LOGGER = logging.getLogger(__name__)

_PARAM_NAMES = ("rel", "type", "profile", "title", "rev", "anchor", "hreflang", "media")
_QUOTED = r'"(?:[^"\\]|\\.)*"'

# URI references and quoted strings are atoms: normalisation never looks inside
# them. Everything between atoms is a gap holding separators and parameter names.
_TOKEN = re.compile(r"(?P<atom><[^>]*>|%s)|(?P<gap>[^<\"]+)|(?P<stray>[<\"])" % _QUOTED)

_PARAM_AHEAD = r"(?=(?:%s)\s*=)" % "|".join(_PARAM_NAMES)
# A known parameter directly after an atom, e.g. `<a> rel="x"` or `rel="x" type="y"`.
_LEADING_MISSING_SEPARATOR = re.compile(r"^\s*" + _PARAM_AHEAD)
# Whitespace standing in for a missing ";" inside a gap, e.g. `rel=x type=y`.
_MISSING_SEPARATOR = re.compile(r"(?<=[^\s;])\s+" + _PARAM_AHEAD)
# Any ";" with its surrounding whitespace, including runs like "; ;".
_PARAM_SEPARATOR = re.compile(r"\s*;[\s;]*")
_TRAILING_ENTRY_SEPARATOR = re.compile(r"\s*,\s*$")

_ENTRY = re.compile(r"<(?P<uri>[^>]*)>(?P<params>(?:%s|[^<\"])*)" % _QUOTED)
_PARAM = re.compile(
    r";\s*(?P<name>[!#$%%&'*+.^_`|~0-9A-Za-z-]+)\s*(?:=\s*(?P<value>%s|[^;,\s]*))?" % _QUOTED
)
_ESCAPE = re.compile(r"\\(.)")


def _normalise_gap(gap: str, follows_atom: bool, precedes_uri: bool) -> str:
    if follows_atom:
        gap = _LEADING_MISSING_SEPARATOR.sub(";", gap, count=1)
    gap = _MISSING_SEPARATOR.sub(";", gap)
    gap = _PARAM_SEPARATOR.sub("; ", gap)
    if precedes_uri:
        gap = _TRAILING_ENTRY_SEPARATOR.sub(", ", gap)
    return gap


def normalise_link_header(raw: str) -> str:
    """Rewrite a Link header value into canonical spacing.

    Parameters end up separated by exactly ``"; "`` and entries by ``", "``.
    URIs and quoted values are left untouched. Applying it to its own output
    changes nothing.
    """
    tokens = list(_TOKEN.finditer(raw))
    parts = []
    for index, token in enumerate(tokens):
        gap = token.group("gap")
        if gap is None:
            parts.append(token.group())
            continue
        following = tokens[index + 1].group() if index + 1 < len(tokens) else ""
        parts.append(_normalise_gap(gap, follows_atom=index > 0, precedes_uri=following.startswith("<")))
    return "".join(parts).strip()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _ESCAPE.sub(r"\1", value[1:-1])
    return value


def _parse_params(params: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for match in _PARAM.finditer(params):
        # a repeated parameter keeps its first occurrence
        parsed.setdefault(match.group("name").lower(), _unquote(match.group("value") or ""))
    return parsed


def _to_entry(uri: str, params: dict[str, str]) -> LinkEntry | None:
    uri = uri.strip()
    rel = params.get("rel")
    media_type = params.get("type")
    if not uri or not rel or not media_type:
        return None
    return LinkEntry(uri=uri, rel=rel, type=media_type, profile=params.get("profile"))


def parse_link_header(raw: str) -> Iterator[LinkEntry]:
    """Yield the entries of a Link header, skipping any that do not parse."""
    for match in _ENTRY.finditer(normalise_link_header(raw)):
        entry = _to_entry(match.group("uri"), _parse_params(match.group("params")))
        if entry is None:
            LOGGER.debug("Dropping unparseable link entry: %s", match.group())
            continue
        yield entry


def is_described_by(entry: LinkEntry) -> bool:
    return DESCRIBED_BY_REL in entry.rels and entry.type.strip().lower() == JSON_LD_TYPE


def select_described_by(entries: Iterable[LinkEntry]) -> LinkEntry | None:
    """Return the last describedby JSON-LD entry, or None."""
    selected = None
    for entry in entries:
        if is_described_by(entry):
            selected = entry
    return selected


def resolve_signposting_uri(raw: str) -> Ok[str] | Err[NoDescribedByLinkError]:
    entry = select_described_by(parse_link_header(raw))
    if entry is None:
        return Err(
            NoDescribedByLinkError(
                message=f"No {JSON_LD_TYPE} {DESCRIBED_BY_REL} link found in: {raw!r}"
            )
        )
    return Ok(entry.uri)

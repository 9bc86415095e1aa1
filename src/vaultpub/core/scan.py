"""Header/footer extraction: split raw document text into YAML header, JSON settings footer, and body.

Both scanners are small explicit state machines. Absent or malformed delimiters
degrade to an empty block; only malformed data inside well-formed delimiters
raises.
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, auto
from typing import Any

import yaml

from vaultpub.core.errors import FooterParseError, HeaderParseError


log = logging.getLogger(__name__)

HEADER_DELIMITER = "-"
FENCE_CHAR = "`"
LINE_BOUNDARY = "\r\n"
COMMENT_CHAR = "%"


class HeaderState(Enum):
    AWAITING_OPEN_DELIMITER = auto()
    IN_HEADER = auto()
    AWAITING_CLOSE_DELIMITER = auto()


class FooterState(Enum):
    AWAITING_FENCE_FROM_END = auto()
    IN_FENCED_BLOCK = auto()
    AWAITING_OPEN_FENCE = auto()


@dataclass(frozen=True)
class HeaderSpan:
    content_start: int          # first char after the opening triad
    content_end: int            # line boundary before the closing triad
    body_start: int             # first char after the closing delimiter line


@dataclass(frozen=True)
class FooterSpan:
    fence_start: int            # first backtick of the opening fence
    content_start: int
    content_end: int            # first backtick of the closing fence


@dataclass
class ScannedDocument:
    header: dict[str, Any] = field(default_factory=dict)
    footer: Any = field(default_factory=dict)
    body: str = ""
    body_line_offset: int = 0   # source line of the first body line


def _locate_header(text: str) -> HeaderSpan | None:
    state = HeaderState.AWAITING_OPEN_DELIMITER
    run = 0
    start = 0

    for i, ch in enumerate(text):
        if state is HeaderState.AWAITING_OPEN_DELIMITER:
            if ch == HEADER_DELIMITER:
                run += 1
                if run == 3:
                    state, start = HeaderState.IN_HEADER, i + 1
                continue
            if run:
                log.warning("Header opening has %d of 3 delimiter characters; treating document as headerless", run)
            else:
                log.debug("No header delimiter at document start")
            return None

        if state is HeaderState.IN_HEADER:
            if ch in LINE_BOUNDARY:
                state, run = HeaderState.AWAITING_CLOSE_DELIMITER, 0
            continue

        # AWAITING_CLOSE_DELIMITER
        if ch == HEADER_DELIMITER:
            run += 1
            if run == 3:
                triad_start = i - 2
                newline = text.find("\n", i + 1)
                body_start = len(text) if newline < 0 else newline + 1
                return HeaderSpan(start, max(start, triad_start - 1), body_start)
        elif ch in LINE_BOUNDARY:
            run = 0
        else:
            state = HeaderState.IN_HEADER

    if state is not HeaderState.AWAITING_OPEN_DELIMITER:
        log.debug("Header opened but never closed; ignoring it")
    return None


def _locate_footer(text: str) -> FooterSpan | None:
    state = FooterState.AWAITING_FENCE_FROM_END
    run = 0
    content_end = fence_right = 0

    for i in range(len(text) - 1, -1, -1):
        ch = text[i]
        if state is FooterState.AWAITING_FENCE_FROM_END:
            if ch == FENCE_CHAR:
                run += 1
                if run == 3:
                    state, content_end = FooterState.IN_FENCED_BLOCK, i
                continue
            if run or not (ch.isspace() or ch == COMMENT_CHAR):
                return None
            continue

        if state is FooterState.IN_FENCED_BLOCK:
            if ch == FENCE_CHAR:
                state, run, fence_right = FooterState.AWAITING_OPEN_FENCE, 1, i
            continue

        # AWAITING_OPEN_FENCE
        if ch == FENCE_CHAR:
            if run < 3:
                run += 1
            else:
                fence_right -= 1
        elif ch in LINE_BOUNDARY and run == 3:
            return FooterSpan(fence_right - 2, fence_right + 1, content_end)
        else:
            state, run = FooterState.IN_FENCED_BLOCK, 0

    return None


def _normalize(value: Any) -> Any:
    """Convert YAML-only scalars and collections so header data is JSON-serializable.

    Dates become ISO strings, `!!binary` becomes base64 text and sets become
    sorted lists.
    """
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return sorted((_normalize(v) for v in value), key=repr)
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def _parse_header(text: str, span: HeaderSpan) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text[span.content_start:span.content_end].strip())
    except yaml.YAMLError as e:
        raise HeaderParseError(f"Invalid YAML header: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise HeaderParseError(f"Invalid YAML header: expected a mapping, got {type(data).__name__}")
    return _normalize(data)


def _parse_footer(text: str, span: FooterSpan) -> Any:
    try:
        return json.loads(text[span.content_start:span.content_end].strip())
    except json.JSONDecodeError as e:
        raise FooterParseError(f"Invalid JSON settings footer: {e}") from e


def scan_header(text: str) -> dict[str, Any]:
    """Return the leading YAML mapping, or {} when the document has no well-formed header."""
    span = _locate_header(text)
    return _parse_header(text, span) if span else {}


def scan_footer(text: str) -> Any:
    """Return the JSON value of the trailing settings fence, or {} when there is none."""
    span = _locate_footer(text)
    return _parse_footer(text, span) if span else {}


def _strip_comment_opener(body: str) -> str:
    """Drop a dangling '%%' line left behind when the footer sat inside an Obsidian comment."""
    marker = COMMENT_CHAR * 2
    trimmed = body.rstrip()
    line_start = trimmed.rfind("\n") + 1
    last_line = trimmed[line_start:].strip()
    if last_line.startswith(marker) and last_line.count(marker) == 1:
        return trimmed[:line_start]
    return body


def scan_document(text: str) -> ScannedDocument:
    """Scan header and footer and return them together with the remaining body."""
    header_span = _locate_header(text)
    body_start = header_span.body_start if header_span else 0

    footer_span = _locate_footer(text)
    if footer_span and footer_span.fence_start < body_start:
        footer_span = None
    body_end = footer_span.fence_start if footer_span else len(text)

    body = text[body_start:body_end]
    if footer_span:
        body = _strip_comment_opener(body)

    return ScannedDocument(
        header=_parse_header(text, header_span) if header_span else {},
        footer=_parse_footer(text, footer_span) if footer_span else {},
        body=body,
        body_line_offset=text.count("\n", 0, body_start),
    )

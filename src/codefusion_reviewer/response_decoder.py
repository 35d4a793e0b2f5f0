# src/codefusion_reviewer/response_decoder.py
"""
Turns the free-form text returned by the model into review comments.

Decoding never raises: when nothing structured can be recovered the whole
response becomes a single comment, and a failing stream becomes a single
error comment, so a broken AI review never blocks the pull request.
"""
import json
import logging
import math
import re
from typing import Any, AsyncIterable, Callable, List, Mapping, Optional, Sequence, Tuple

from .models import CommentKind, ReviewComment, Severity

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_MESSAGE = "AI review finished without reporting any issues."
ERROR_MESSAGE_PREFIX = "Unable to process AI response"
PREFERRED_ARRAY_FIELDS = ("comments", "reviews", "suggestions")

FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\n(?P<body>.*?)\n?```$", re.DOTALL)

_NOT_PARSED = object()


async def collect_response(segments: AsyncIterable[str]) -> str:
    """Concatenates every text segment of a streamed model response."""
    parts = []
    async for segment in segments:
        if segment:
            parts.append(segment)
    return "".join(parts)


def error_comment(error: BaseException) -> ReviewComment:
    message = str(error) or type(error).__name__
    return ReviewComment(
        content=f"{ERROR_MESSAGE_PREFIX}: {message}",
        kind=CommentKind.GENERAL,
        severity=Severity.LOW,
    )


async def decode_response_stream(
    segments: AsyncIterable[str],
    default_kind: CommentKind = CommentKind.GENERAL,
) -> List[ReviewComment]:
    """
    Drains a model text stream and decodes it into comments.

    Any exception raised while the stream is produced, consumed or decoded is logged and
    replaced by a single GENERAL/LOW comment summarizing the error.
    """
    try:
        full_response = await collect_response(segments)
        logger.debug(f"Collected AI response ({len(full_response)} chars).")
        return decode_response_text(full_response, default_kind)
    except Exception as e:
        logger.error(f"AI response stream failed: {e}", exc_info=True)
        return [error_comment(e)]


def _try_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError): # Deep nesting exhausts the scanner
        return _NOT_PARSED


def strip_code_fence(text: str) -> str:
    """Removes a fence that wraps the whole (trimmed) response, if there is one."""
    stripped = text.strip()
    match = FENCE_RE.match(stripped)
    if match:
        return match.group("body").strip()
    return stripped


def _parse_fenced_or_plain(text: str, parsed: Any) -> Any:
    return _try_json(text)


def _unwrap_object(text: str, parsed: Any) -> Any:
    if not isinstance(parsed, dict):
        return parsed
    for key in PREFERRED_ARRAY_FIELDS:
        if isinstance(parsed.get(key), list):
            return parsed[key]
    for value in parsed.values():
        if isinstance(value, list):
            return value
    return parsed


def _scan_for_array(text: str, parsed: Any) -> Any:
    if isinstance(parsed, list):
        return parsed
    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            candidate, _ = decoder.raw_decode(text, start)
        except RecursionError:
            # Nested past the interpreter limit; retrying each inner "[" would not help
            logger.warning("AI response is nested too deeply to scan for a comment array.")
            return parsed
        except ValueError:
            candidate = None
        if isinstance(candidate, list) and any(isinstance(item, dict) for item in candidate):
            return candidate
        start = text.find("[", start + 1)
    return parsed


# Applied in order; each step receives the stripped text and the previous result.
DECODE_STEPS: Tuple[Callable[[str, Any], Any], ...] = (
    _parse_fenced_or_plain,
    _unwrap_object,
    _scan_for_array,
)


def extract_comment_array(text: str) -> Optional[List[Any]]:
    """Runs the decode cascade; returns the first JSON array found, or None."""
    stripped = strip_code_fence(text)
    parsed: Any = _NOT_PARSED
    for step in DECODE_STEPS:
        parsed = step(stripped, parsed)
        if isinstance(parsed, list):
            return parsed
    return None


def _match_enum(value: Any, enum_cls, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    return default


def _coerce_line_number(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value)
    return value


def _coerce_file_path(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def coerce_comment(record: Any, default_kind: CommentKind = CommentKind.GENERAL) -> Optional[ReviewComment]:
    """
    Validates one decoded record. Unknown type -> default_kind, unknown
    severity -> LOW. Returns None when the record has no usable content.
    """
    if not isinstance(record, Mapping):
        return None
    raw_content = record.get("content")
    content = "" if raw_content is None else str(raw_content).strip()
    if not content:
        return None
    return ReviewComment(
        content=content,
        kind=_match_enum(record.get("type", record.get("kind")), CommentKind, default_kind),
        severity=_match_enum(record.get("severity"), Severity, Severity.LOW),
        file_path=_coerce_file_path(record.get("filePath")),
        line_number=_coerce_line_number(record.get("lineNumber")),
    )


def coerce_comments(records: Sequence[Any], default_kind: CommentKind = CommentKind.GENERAL) -> List[ReviewComment]:
    comments = []
    for record in records:
        comment = coerce_comment(record, default_kind)
        if comment is None:
            logger.debug(f"Discarding AI review item without content: {record!r}")
            continue
        comments.append(comment)
    return comments


def decode_response_text(text: str, default_kind: CommentKind = CommentKind.GENERAL) -> List[ReviewComment]:
    """
    Decodes a complete model response into candidate comments.

    A JSON array (plain, fenced, wrapped in an object field, or embedded in
    prose) is coerced element by element. If no array can be recovered, the
    trimmed response becomes the content of one comment.
    """
    records = extract_comment_array(text or "")
    if records is not None:
        comments = coerce_comments(records, default_kind)
        logger.info(f"Decoded {len(comments)} review comments from AI response ({len(records)} items).")
        return comments

    logger.warning("AI response contained no JSON array; returning it as a single comment.")
    stripped = strip_code_fence(text or "")
    return [
        ReviewComment(
            content=stripped or EMPTY_RESPONSE_MESSAGE,
            kind=default_kind,
            severity=Severity.LOW,
        )
    ]

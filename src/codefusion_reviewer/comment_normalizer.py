# src/codefusion_reviewer/comment_normalizer.py
import dataclasses
import logging
from typing import AbstractSet, Iterable, Iterator, Optional, Set, Tuple, Union

from .models import ReviewComment

logger = logging.getLogger(__name__)

NO_VALUE = "-"


def resolve_file_path(candidate: Optional[str], known_filenames: AbstractSet[str]) -> Optional[str]:
    """
    Maps a model-supplied path onto one of the files in the diff.

    An exact match wins. Otherwise a known filename qualifies when either path
    ends with the other (plain string suffix, so "a.ts" also matches
    "src/data.ts"). Exactly one qualifying filename is substituted; none or
    several give None so the comment is demoted to an overall comment.

    Known limitation: when two changed files share the suffix the model used,
    a legitimate file comment loses its path instead of being attached to a guess.
    """
    if not candidate:
        return None
    if candidate in known_filenames:
        return candidate
    matches = [name for name in known_filenames if name.endswith(candidate) or candidate.endswith(name)]
    if len(matches) == 1:
        logger.debug(f"Resolved AI file path '{candidate}' to '{matches[0]}'.")
        return matches[0]
    if matches:
        logger.info(f"AI file path '{candidate}' is ambiguous ({len(matches)} matches); demoting to overall comment.")
    else:
        logger.info(f"AI file path '{candidate}' matches no changed file; demoting to overall comment.")
    return None


def _dedup_key(comment: ReviewComment) -> Tuple[str, Union[int, str], str]:
    line = comment.line_number if comment.line_number is not None else NO_VALUE
    return (comment.file_path or NO_VALUE, line, comment.content)


def normalize_comments(
    candidates: Iterable[ReviewComment],
    known_filenames: Iterable[str],
) -> Iterator[ReviewComment]:
    """
    Resolves file paths and drops duplicates, yielding comments lazily in their
    original order. Comments without a file path pass through as overall comments.
    """
    known: Set[str] = set(known_filenames)
    seen: Set[Tuple[str, Union[int, str], str]] = set()
    for comment in candidates:
        if comment.file_path is not None:
            resolved = resolve_file_path(comment.file_path, known)
            if resolved != comment.file_path:
                comment = dataclasses.replace(comment, file_path=resolved)
        key = _dedup_key(comment)
        if key in seen:
            logger.debug(f"Dropping duplicate AI comment for {key[0]}:{key[1]}.")
            continue
        seen.add(key)
        yield comment

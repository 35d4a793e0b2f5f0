"""
codefusion-reviewer - diff parsing and AI-assisted review comments for pull requests.
"""

from .comment_normalizer import normalize_comments, resolve_file_path
from .diff_parser import parse_file_diff, parse_multi_file_diff
from .diff_stats import aggregate_diff_stats
from .errors import FormatError, ReviewSourceError, SourceNotFoundError, SourceUnavailableError
from .models import (
    CommentKind,
    DiffChunk,
    DiffFile,
    DiffLine,
    FileChange,
    FileStatus,
    LineKind,
    ReviewComment,
    Severity,
)
from .prompt_builder import build_review_prompt
from .response_decoder import decode_response_stream, decode_response_text
from .review_service import CodeReviewService, InMemoryPullRequestStore

__version__ = "0.1.0"

__all__ = [
    "CodeReviewService",
    "CommentKind",
    "DiffChunk",
    "DiffFile",
    "DiffLine",
    "FileChange",
    "FileStatus",
    "FormatError",
    "InMemoryPullRequestStore",
    "LineKind",
    "ReviewComment",
    "ReviewSourceError",
    "Severity",
    "SourceNotFoundError",
    "SourceUnavailableError",
    "aggregate_diff_stats",
    "build_review_prompt",
    "decode_response_stream",
    "decode_response_text",
    "normalize_comments",
    "parse_file_diff",
    "parse_multi_file_diff",
    "resolve_file_path",
]

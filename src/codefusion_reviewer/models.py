# src/codefusion_reviewer/models.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    DELETED = "deleted"

    @classmethod
    def coerce(cls, value: Any) -> "FileStatus":
        """Maps a provider status string onto a FileStatus, falling back to MODIFIED."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown file status '{value}', treating it as 'modified'.")
            return cls.MODIFIED


class LineKind(str, Enum):
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"


class CommentKind(str, Enum):
    GENERAL = "GENERAL"
    SUGGESTION = "SUGGESTION"
    REVIEW = "REVIEW"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class DiffLine:
    """
    A single line inside a chunk. Context and deletion lines carry old_line,
    context and addition lines carry new_line.
    """
    kind: LineKind
    content: str # Prefix ('+', '-', ' ') stripped
    old_line: Optional[int] = None
    new_line: Optional[int] = None


@dataclass(frozen=True)
class DiffChunk:
    """
    Represents a chunk (hunk) of changes within a file patch.
    """
    header: str # e.g., "@@ -1,5 +1,6 @@"
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: Tuple[DiffLine, ...] = ()


@dataclass(frozen=True)
class DiffFile:
    """
    Represents a single parsed file of a diff.
    """
    filename: str
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    chunks: Tuple[DiffChunk, ...] = ()
    patch: str = ""


@dataclass(frozen=True)
class FileChange:
    """
    A changed file as supplied by a diff provider, before parsing.
    """
    filename: str
    status: FileStatus
    additions: int = 0
    deletions: int = 0
    patch: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileChange":
        return cls(
            filename=str(data["filename"]),
            status=FileStatus.coerce(data.get("status", "modified")),
            additions=int(data.get("additions") or 0),
            deletions=int(data.get("deletions") or 0),
            patch=data.get("patch") or "",
        )


@dataclass(frozen=True)
class DiffStats:
    total_files: int = 0
    total_additions: int = 0
    total_deletions: int = 0

    @property
    def total_changes(self) -> int:
        return self.total_additions + self.total_deletions


@dataclass(frozen=True)
class DiffSummary:
    stats: DiffStats
    files_by_status: Mapping[FileStatus, Tuple[DiffFile, ...]]
    has_conflicts: bool # Heuristic only, see diff_stats.has_conflicts


@dataclass(frozen=True)
class BranchDiff:
    """
    Everything a diff provider returns for a (repository, source, target) triple.
    """
    files: Tuple[FileChange, ...] = ()
    stats: DiffStats = field(default_factory=DiffStats)


@dataclass(frozen=True)
class PullRequestInfo:
    pr_id: str
    title: str
    description: Optional[str] = None
    source_branch: str = ""
    target_branch: str = ""
    repository: Optional[str] = None # Local checkout path or "owner/name", depending on the provider


@dataclass(frozen=True)
class ReviewComment:
    """
    A single AI review comment. Comments without file_path are overall comments.
    """
    content: str
    kind: CommentKind = CommentKind.GENERAL
    severity: Severity = Severity.LOW
    file_path: Optional[str] = None
    line_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape handed to the persistence/UI layer."""
        data: Dict[str, Any] = {
            "content": self.content,
            "type": self.kind.value,
            "severity": self.severity.value,
        }
        if self.file_path is not None:
            data["filePath"] = self.file_path
        if self.line_number is not None:
            data["lineNumber"] = self.line_number
        return data

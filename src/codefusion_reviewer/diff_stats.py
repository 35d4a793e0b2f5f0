# src/codefusion_reviewer/diff_stats.py
from typing import Dict, Iterable, List, Sequence

from .models import DiffFile, DiffStats, DiffSummary, FileStatus

CONFLICT_STATUSES = (FileStatus.REMOVED, FileStatus.DELETED)


def calculate_stats(files: Iterable[DiffFile]) -> DiffStats:
    total_files = total_additions = total_deletions = 0
    for diff_file in files:
        total_files += 1
        total_additions += diff_file.additions
        total_deletions += diff_file.deletions
    return DiffStats(
        total_files=total_files,
        total_additions=total_additions,
        total_deletions=total_deletions,
    )


def group_files_by_status(files: Iterable[DiffFile]) -> Dict[FileStatus, List[DiffFile]]:
    """Groups files by status; every status is present as a key, possibly empty."""
    grouped: Dict[FileStatus, List[DiffFile]] = {status: [] for status in FileStatus}
    for diff_file in files:
        grouped[FileStatus.coerce(diff_file.status)].append(diff_file)
    return grouped


def has_conflicts(files: Iterable[DiffFile]) -> bool:
    """
    Heuristic flag: True iff any file was removed or deleted.

    This is NOT a merge-conflict detector. No three-way merge is attempted;
    the flag only marks change sets that drop files and so deserve a closer look.
    """
    return any(FileStatus.coerce(f.status) in CONFLICT_STATUSES for f in files)


def aggregate_diff_stats(files: Sequence[DiffFile]) -> DiffSummary:
    """
    Aggregates parsed files into totals, a status grouping and the conflict heuristic.
    Empty input yields all-zero stats and has_conflicts=False.
    """
    files = list(files)
    grouped = group_files_by_status(files)
    return DiffSummary(
        stats=calculate_stats(files),
        files_by_status={status: tuple(members) for status, members in grouped.items()},
        has_conflicts=has_conflicts(files),
    )

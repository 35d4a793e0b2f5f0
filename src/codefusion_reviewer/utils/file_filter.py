from typing import List, Optional, Sequence, TypeVar

from pathspec import PathSpec

from ..models import FileChange

T = TypeVar("T", FileChange, str)


def _path_of(item) -> str:
    return item if isinstance(item, str) else item.filename


def filter_files_by_patterns(
    files: Sequence[T],
    include_patterns: Optional[List[str]] = None,
    exclude_patterns: Optional[List[str]] = None
) -> List[T]:
    """
    Filter changed files (or plain paths) with gitignore-style patterns.

    Args:
        files: FileChange objects or file paths to filter
        include_patterns: Optional list of patterns to include
        exclude_patterns: Optional list of patterns to exclude

    Returns:
        The files kept, in their original order
    """
    if not files:
        return []

    included = list(files)
    if include_patterns:
        include_spec = PathSpec.from_lines("gitwildmatch", include_patterns)
        included = [f for f in included if include_spec.match_file(_path_of(f))]

    if exclude_patterns:
        exclude_spec = PathSpec.from_lines("gitwildmatch", exclude_patterns)
        included = [f for f in included if not exclude_spec.match_file(_path_of(f))]

    return included

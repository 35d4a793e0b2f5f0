# src/codefusion_reviewer/diff_parser.py
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import FormatError
from .models import DiffChunk, DiffFile, DiffLine, FileChange, FileStatus, LineKind

logger = logging.getLogger(__name__)

CHUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)
NO_NEWLINE_MARKER = "\\"


def parse_chunk_header(header: str, filename: str = "") -> Tuple[int, int, int, int]:
    """
    Parses "@@ -oldStart[,oldCount] +newStart[,newCount] @@".
    Missing counts default to 1.

    Raises:
        FormatError: if the header does not have this shape.
    """
    match = CHUNK_HEADER_RE.match(header)
    if not match:
        raise FormatError(header, filename)
    return (
        int(match.group("old_start")),
        int(match.group("old_count") or 1),
        int(match.group("new_start")),
        int(match.group("new_count") or 1),
    )


class _ChunkBuilder:
    """Accumulates the lines of one chunk with running old/new counters."""

    def __init__(self, header: str, filename: str):
        self.header = header
        self.old_start, self.old_count, self.new_start, self.new_count = parse_chunk_header(header, filename)
        self.next_old = self.old_start
        self.next_new = self.new_start
        self.lines: List[DiffLine] = []

    def add(self, raw_line: str) -> DiffLine:
        prefix = raw_line[:1]
        if prefix == "+":
            line = DiffLine(LineKind.ADDITION, raw_line[1:], new_line=self.next_new)
            self.next_new += 1
        elif prefix == "-":
            line = DiffLine(LineKind.DELETION, raw_line[1:], old_line=self.next_old)
            self.next_old += 1
        else:
            content = raw_line[1:] if prefix == " " else raw_line
            line = DiffLine(LineKind.CONTEXT, content, old_line=self.next_old, new_line=self.next_new)
            self.next_old += 1
            self.next_new += 1
        self.lines.append(line)
        return line

    def build(self) -> DiffChunk:
        return DiffChunk(
            header=self.header,
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            lines=tuple(self.lines),
        )


def _split_patch_lines(patch: str) -> List[str]:
    # Only "\n" ends a line; "\r", "\f" and friends are part of the content
    lines = (patch or "").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def parse_file_diff(filename: str, patch: str, status: Union[FileStatus, str]) -> DiffFile:
    """
    Parses the unified-diff patch of a single file into chunks with dual
    (old/new) line numbering.

    Args:
        filename: Path of the file the patch belongs to.
        patch: Raw patch text. Anything before the first "@@" header
            (e.g. "diff --git", "index", "---", "+++") is ignored.
        status: Provider status of the file.

    Returns:
        A DiffFile with additions/deletions counted from the patch.

    Raises:
        FormatError: if a line starting with "@@" is not a valid chunk header.
    """
    chunks: List[DiffChunk] = []
    current: Optional[_ChunkBuilder] = None
    additions = 0
    deletions = 0

    for raw_line in _split_patch_lines(patch):
        if raw_line.startswith("@@"):
            if current is not None:
                chunks.append(current.build())
            current = _ChunkBuilder(raw_line, filename)
            continue

        if current is None:
            continue

        # "\ No newline at end of file" belongs to neither side
        if raw_line.startswith(NO_NEWLINE_MARKER):
            continue

        line = current.add(raw_line)
        if line.kind is LineKind.ADDITION:
            additions += 1
        elif line.kind is LineKind.DELETION:
            deletions += 1

    if current is not None:
        chunks.append(current.build())

    logger.debug(f"Parsed {filename}: {len(chunks)} chunks, +{additions} -{deletions}")
    return DiffFile(
        filename=filename,
        status=FileStatus.coerce(status),
        additions=additions,
        deletions=deletions,
        chunks=tuple(chunks),
        patch=patch or "",
    )


def parse_multi_file_diff(changes: Iterable[FileChange]) -> List[DiffFile]:
    """
    Parses every provider file in order. A FormatError in any file propagates;
    use parse_file_diff directly to skip bad files instead.
    """
    return [parse_file_diff(change.filename, change.patch, change.status) for change in changes]


def generate_line_number_map(chunks: Sequence[DiffChunk]) -> Dict[int, Tuple[Optional[int], Optional[int]]]:
    """
    Maps each displayed row (0-based, counted across all chunks, headers excluded)
    to its (old_line, new_line) pair.
    """
    line_map: Dict[int, Tuple[Optional[int], Optional[int]]] = {}
    row = 0
    for chunk in chunks:
        for line in chunk.lines:
            if line.old_line is not None or line.new_line is not None:
                line_map[row] = (line.old_line, line.new_line)
            row += 1
    return line_map

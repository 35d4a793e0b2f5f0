# src/codefusion_reviewer/prompt_builder.py
import functools
import importlib.resources
import logging
from string import Template
from typing import Optional, Protocol, Sequence, Union

from .models import DiffStats, FileStatus

logger = logging.getLogger(__name__)

MAX_PATCH_LENGTH = 3000
OVERALL_DIFF_MAX_LENGTH = 12000
PART_SEPARATOR = "\n\n"
PROMPT_TEMPLATE_NAME = "default_review_prompt.txt"

NO_DESCRIPTION = "(no description)"
NO_DIFF_CONTENT = "(no diff content available)"

FALLBACK_PROMPT_TEMPLATE = (
    "Review the pull request \"${pr_title}\" and reply with a JSON array of comments "
    "(content, type, severity, filePath, lineNumber) followed by one overall comment.\n\n"
    "${pr_description}\n\n${file_list}\n\n${diff_content}"
)


class PatchSource(Protocol):
    """Anything carrying a filename, status and raw patch (FileChange, DiffFile)."""
    filename: str
    status: Union[FileStatus, str]
    patch: str


@functools.lru_cache(maxsize=None)
def load_prompt_template(name: str = PROMPT_TEMPLATE_NAME) -> Template:
    """Loads a review prompt template from the packaged prompts directory."""
    try:
        template_ref = importlib.resources.files("codefusion_reviewer.prompts").joinpath(name)
        template_str = template_ref.read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        logger.error(f"Prompt template '{name}' not found in package. Using built-in fallback.")
        template_str = FALLBACK_PROMPT_TEMPLATE
    return Template(template_str)


def _status_text(status: Union[FileStatus, str]) -> str:
    return status.value if isinstance(status, FileStatus) else str(status)


def build_diff_section(
    files: Sequence[PatchSource],
    max_patch_length: int = MAX_PATCH_LENGTH,
    overall_max_length: int = OVERALL_DIFF_MAX_LENGTH,
) -> str:
    """
    Concatenates per-file patches under "--- <filename> (<status>)" headers.

    Each patch is cut to max_patch_length characters, and files stop being
    included once the joined result would exceed overall_max_length, so the
    returned text is never longer than overall_max_length. Files without a
    patch (binary, mode-only) are skipped.
    """
    parts = []
    used = 0
    for diff_file in files:
        if not diff_file.patch:
            continue
        header = f"--- {diff_file.filename} ({_status_text(diff_file.status)})\n"
        remaining = overall_max_length - used - len(header)
        if remaining <= 0:
            break
        snippet = diff_file.patch[:min(remaining, max_patch_length)]
        parts.append(header + snippet)
        used += len(header) + len(snippet) + len(PART_SEPARATOR)
        if used >= overall_max_length:
            break
    return PART_SEPARATOR.join(parts)


def build_review_prompt(
    title: str,
    description: Optional[str],
    files: Sequence[PatchSource],
    stats: DiffStats,
    max_patch_length: int = MAX_PATCH_LENGTH,
    overall_max_length: int = OVERALL_DIFF_MAX_LENGTH,
) -> str:
    """
    Builds the single review prompt for a pull request.

    Args:
        title: PR title.
        description: PR description, may be None.
        files: Ordered files to review.
        stats: Aggregate diff statistics.

    Returns:
        The prompt text, asking the model for a JSON array of per-file comments
        followed by exactly one overall comment.
    """
    diff_content = build_diff_section(files, max_patch_length, overall_max_length)
    file_list = "\n".join(f"- {f.filename} ({_status_text(f.status)})" for f in files)

    values = {
        "pr_title": title or "N/A",
        "pr_description": description or NO_DESCRIPTION,
        "files_changed": stats.total_files,
        "insertions": stats.total_additions,
        "deletions": stats.total_deletions,
        "file_list": file_list or "(none)",
        "diff_content": diff_content or NO_DIFF_CONTENT,
    }
    template = load_prompt_template()
    try:
        return template.substitute(values)
    except (KeyError, ValueError) as e:
        logger.error(f"Prompt template substitution failed: {e}. Using built-in fallback.")
        return Template(FALLBACK_PROMPT_TEMPLATE).safe_substitute(values)

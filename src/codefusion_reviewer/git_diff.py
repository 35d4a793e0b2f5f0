# src/codefusion_reviewer/git_diff.py
import logging
import os
import subprocess
from typing import List, Optional, Sequence

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from .errors import SourceNotFoundError, SourceUnavailableError
from .models import BranchDiff, DiffStats, FileChange, FileStatus

logger = logging.getLogger(__name__)

GIT_DIFF_ARGS = ["diff", "--no-color", "--no-ext-diff", "-M"]


def _run_git(args: Sequence[str], cwd: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        raise SourceUnavailableError("'git' command not found. Ensure Git is installed and in PATH.") from e


def get_git_diff(base_ref: str, head_ref: str, cwd: str) -> str:
    """
    Returns the output of `git diff base_ref..head_ref` run inside cwd.

    Raises:
        SourceUnavailableError: if git is missing or the command fails.
    """
    result = _run_git([*GIT_DIFF_ARGS, f"{base_ref}..{head_ref}"], cwd)
    if result.returncode != 0:
        raise SourceUnavailableError(f"git diff {base_ref}..{head_ref} failed: {result.stderr.strip()}")
    return result.stdout


def _file_status(patched_file) -> FileStatus:
    if patched_file.is_added_file:
        return FileStatus.ADDED
    if patched_file.is_removed_file:
        return FileStatus.REMOVED
    if patched_file.is_rename:
        return FileStatus.RENAMED
    return FileStatus.MODIFIED


def split_patch_set(diff_text: str) -> List[FileChange]:
    """
    Splits raw multi-file diff output into per-file changes.
    Each patch holds only the file's hunks, starting at its first "@@" header.
    """
    if not diff_text:
        logger.info("Received empty diff text, returning no changed files.")
        return []

    try:
        patch_set = PatchSet(diff_text)
    except UnidiffParseError as e:
        logger.error(f"Failed to parse diff text with unidiff: {e}")
        logger.debug(f"Problematic diff text (first 500 chars): {diff_text[:500]}")
        raise SourceUnavailableError(f"Diff output could not be parsed: {e}") from e

    changes: List[FileChange] = []
    for patched_file in patch_set:
        changes.append(FileChange(
            filename=patched_file.path,
            status=_file_status(patched_file),
            additions=patched_file.added,
            deletions=patched_file.removed,
            patch="".join(str(hunk) for hunk in patched_file),
        ))
    logger.info(f"Split diff into {len(changes)} changed files.")
    return changes


class LocalGitDiffProvider:
    """
    Diff provider backed by a local clone. The repository argument is the path
    of the checkout; branches are looked up locally first, then on origin.
    """

    def _resolve_branch(self, repo_path: str, branch: str) -> str:
        for ref in (branch, f"origin/{branch}"):
            result = _run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], repo_path)
            if result.returncode == 0:
                return ref
        raise SourceNotFoundError(f"Branch '{branch}' does not exist in repository {repo_path}")

    def get_branch_diff(self, repository: Optional[str], source_branch: str, target_branch: str) -> BranchDiff:
        """
        Diffs target..source in the local repository.

        Raises:
            SourceNotFoundError: missing path, not a git repository, or unknown branch.
            SourceUnavailableError: git is missing or fails.
        """
        if not repository or not os.path.isdir(repository):
            raise SourceNotFoundError(f"Repository path not found: {repository!r}")

        check = _run_git(["rev-parse", "--git-dir"], repository)
        if check.returncode != 0:
            raise SourceNotFoundError(f"Not a git repository: {repository}")

        source_ref = self._resolve_branch(repository, source_branch)
        target_ref = self._resolve_branch(repository, target_branch)
        logger.info(f"Computing branch diff {target_ref}..{source_ref} in {repository}")

        files = split_patch_set(get_git_diff(target_ref, source_ref, cwd=repository))
        stats = DiffStats(
            total_files=len(files),
            total_additions=sum(f.additions for f in files),
            total_deletions=sum(f.deletions for f in files),
        )
        return BranchDiff(files=tuple(files), stats=stats)

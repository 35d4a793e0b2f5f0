# src/codefusion_reviewer/review_service.py
import logging
from typing import AsyncIterator, Dict, List, Mapping, Optional, Protocol, Sequence

from .comment_normalizer import normalize_comments
from .diff_parser import parse_file_diff
from .diff_stats import aggregate_diff_stats
from .errors import FormatError, SourceNotFoundError
from .models import BranchDiff, CommentKind, DiffFile, FileChange, PullRequestInfo, ReviewComment
from .prompt_builder import MAX_PATCH_LENGTH, OVERALL_DIFF_MAX_LENGTH, build_review_prompt
from .utils.file_filter import filter_files_by_patterns

logger = logging.getLogger(__name__)


class PullRequestStore(Protocol):
    def get_pull_request(self, pr_id: str) -> PullRequestInfo: ...


class DiffProvider(Protocol):
    def get_branch_diff(self, repository: Optional[str], source_branch: str, target_branch: str) -> BranchDiff: ...


class CommentSource(Protocol):
    async def get_review_comments(self, prompt: str, default_kind: CommentKind = CommentKind.GENERAL) -> List[ReviewComment]: ...


class InMemoryPullRequestStore:
    """Pull-request store over a plain mapping of id -> PullRequestInfo."""

    def __init__(self, pull_requests: Optional[Mapping[str, PullRequestInfo]] = None):
        self._pull_requests: Dict[str, PullRequestInfo] = dict(pull_requests or {})

    def add(self, pull_request: PullRequestInfo) -> None:
        self._pull_requests[pull_request.pr_id] = pull_request

    def get_pull_request(self, pr_id: str) -> PullRequestInfo:
        pull_request = self._pull_requests.get(str(pr_id))
        if pull_request is None:
            raise SourceNotFoundError(f"Pull request {pr_id} not found")
        return pull_request


class CodeReviewService:
    """
    Runs one AI review per pull request: diff -> prompt -> model -> comments.
    """

    def __init__(
        self,
        pr_store: PullRequestStore,
        diff_provider: DiffProvider,
        llm_reviewer: CommentSource,
        include_patterns: Optional[List[str]] = None,
        exclude_patterns: Optional[List[str]] = None,
        max_patch_length: int = MAX_PATCH_LENGTH,
        overall_diff_max_length: int = OVERALL_DIFF_MAX_LENGTH,
    ):
        self.pr_store = pr_store
        self.diff_provider = diff_provider
        self.llm_reviewer = llm_reviewer
        self.include_patterns = include_patterns or []
        self.exclude_patterns = exclude_patterns or []
        self.max_patch_length = max_patch_length
        self.overall_diff_max_length = overall_diff_max_length

    def _get_pull_request(self, pr_id: str) -> PullRequestInfo:
        pull_request = self.pr_store.get_pull_request(pr_id)
        if not pull_request.repository:
            raise SourceNotFoundError(f"Pull request {pr_id} has no repository information")
        return pull_request

    def _parse_changes(self, changes: Sequence[FileChange]) -> List[DiffFile]:
        parsed: List[DiffFile] = []
        for change in changes:
            try:
                parsed.append(parse_file_diff(change.filename, change.patch, change.status))
            except FormatError as e:
                logger.warning(f"Skipping {change.filename}: {e}")
        return parsed

    async def analyze_pr(self, pr_id: str) -> AsyncIterator[ReviewComment]:
        """
        Reviews a pull request and yields its comments one at a time.

        Raises:
            SourceNotFoundError, SourceUnavailableError: when the pull request
                or its diff cannot be obtained.
        """
        pull_request = self._get_pull_request(pr_id)
        logger.info(f"Starting AI review of PR {pr_id}: {pull_request.title!r} "
                    f"({pull_request.source_branch} -> {pull_request.target_branch})")

        branch_diff = self.diff_provider.get_branch_diff(
            pull_request.repository,
            pull_request.source_branch,
            pull_request.target_branch,
        )
        async for comment in self.review_diff(pull_request.title, pull_request.description, branch_diff.files):
            yield comment

    async def review_diff(
        self,
        title: str,
        description: Optional[str],
        changes: Sequence[FileChange],
    ) -> AsyncIterator[ReviewComment]:
        """
        Reviews an in-memory change set with a single model call.
        Yields nothing when no reviewable file remains.
        """
        selected = filter_files_by_patterns(list(changes), self.include_patterns, self.exclude_patterns)
        if len(selected) != len(changes):
            logger.info(f"{len(changes) - len(selected)} files excluded by include/exclude patterns.")

        diff_files = self._parse_changes(selected)
        if not diff_files:
            logger.info("No reviewable files in diff. Skipping review.")
            return

        summary = aggregate_diff_stats(diff_files)
        if summary.has_conflicts:
            logger.info("Change set removes files; flagged by the conflict heuristic.")

        prompt = build_review_prompt(
            title,
            description,
            diff_files,
            summary.stats,
            max_patch_length=self.max_patch_length,
            overall_max_length=self.overall_diff_max_length,
        )
        candidates = await self.llm_reviewer.get_review_comments(prompt, CommentKind.GENERAL)

        count = 0
        for comment in normalize_comments(candidates, (f.filename for f in diff_files)):
            count += 1
            yield comment
        logger.info(f"AI review finished with {count} comments.")

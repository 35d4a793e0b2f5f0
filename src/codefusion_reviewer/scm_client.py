# src/codefusion_reviewer/scm_client.py
import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

import requests # Using requests library for HTTP calls

from .errors import SourceNotFoundError, SourceUnavailableError
from .models import BranchDiff, DiffStats, FileChange, FileStatus, PullRequestInfo

if TYPE_CHECKING:
    from .reviewer_config import ReviewerConfig

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

# GitHub file statuses that have no FileStatus of their own
GITHUB_STATUS_MAP = {
    "copied": FileStatus.ADDED,
    "changed": FileStatus.MODIFIED,
    "unchanged": FileStatus.MODIFIED,
}


class GitHubSCMClient:
    """
    Pull-request store and diff provider backed by the GitHub REST API.
    The repository argument of get_branch_diff is "owner/name".
    """
    def __init__(self, config: 'ReviewerConfig'):
        self.config = config
        self.api_base_url = config.scm_api_url
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if config.scm_token:
            self.headers["Authorization"] = f"Bearer {config.scm_token}"
        logger.info(f"SCM Client initialized for base URL: {self.api_base_url}")

    def _request(self, method: str, endpoint: str, params: Optional[Dict] = None) -> Any:
        """
        Makes an HTTP request and returns the decoded JSON body.

        Raises:
            SourceNotFoundError: on HTTP 404.
            SourceUnavailableError: on any other failure.
        """
        url = f"{self.api_base_url}{endpoint}"
        try:
            logger.debug(f"Making SCM API {method} request to {url} with params {params}")
            response = requests.request(method, url, headers=self.headers, params=params, timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.error(f"SCM API request to {url} encountered an exception: {e}")
            raise SourceUnavailableError(f"Request to {url} failed: {e}") from e

        if response.status_code == 404:
            raise SourceNotFoundError(f"Not found: {url}")
        if response.status_code != 200:
            logger.error(f"SCM API request to {url} failed with status {response.status_code}: {response.text[:500]}")
            raise SourceUnavailableError(f"Request to {url} failed with status {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailableError(f"Response from {url} is not valid JSON") from e

    def get_pull_request(self, pr_id: str) -> PullRequestInfo:
        """
        Fetches title, description and branches of a pull request in config.repo_full_name.
        """
        if not self.config.repo_full_name:
            raise SourceNotFoundError("Cannot fetch PR details: repository full name is not configured.")

        endpoint = f"/repos/{self.config.repo_full_name}/pulls/{pr_id}"
        logger.info(f"Fetching PR details from SCM: {endpoint}")
        data = self._request("GET", endpoint)
        return PullRequestInfo(
            pr_id=str(pr_id),
            title=data.get("title") or "",
            description=data.get("body"), # Body can be None
            source_branch=(data.get("head") or {}).get("ref", ""),
            target_branch=(data.get("base") or {}).get("ref", ""),
            repository=self.config.repo_full_name,
        )

    def get_branch_diff(self, repository: Optional[str], source_branch: str, target_branch: str) -> BranchDiff:
        """
        Fetches the changed files between target and source via the compare API.
        """
        if not repository:
            raise SourceNotFoundError("Cannot compare branches: repository is not set.")

        endpoint = f"/repos/{repository}/compare/{target_branch}...{source_branch}"
        logger.info(f"Fetching branch comparison from SCM: {endpoint}")
        data = self._request("GET", endpoint)

        files = []
        for item in data.get("files") or []:
            status = GITHUB_STATUS_MAP.get(item.get("status"), item.get("status", "modified"))
            files.append(FileChange.from_dict({**item, "status": status}))

        stats = DiffStats(
            total_files=len(files),
            total_additions=sum(f.additions for f in files),
            total_deletions=sum(f.deletions for f in files),
        )
        logger.info(f"Fetched {len(files)} changed files ({target_branch}...{source_branch}).")
        return BranchDiff(files=tuple(files), stats=stats)

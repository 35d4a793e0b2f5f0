# src/codefusion_reviewer/main.py
import asyncio
import json
import logging
import os
import sys
from typing import Tuple

from dotenv import load_dotenv # For local development using .env file

from .errors import ReviewSourceError
from .git_diff import LocalGitDiffProvider
from .llm_reviewer import LLMReviewer
from .models import PullRequestInfo
from .review_service import CodeReviewService, DiffProvider, InMemoryPullRequestStore, PullRequestStore
from .reviewer_config import ReviewerConfig, load_reviewer_config
from .scm_client import GitHubSCMClient

# Global logger for the module
logger = logging.getLogger("codefusion_reviewer") # Use a named logger

LOCAL_PR_ID = "local"


def setup_logging(log_level_str: str):
    """Configures logging to stderr; stdout is reserved for the comment stream."""
    numeric_level = getattr(logging, log_level_str.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        logger.warning(f"Invalid log level '{log_level_str}'. Defaulting to INFO.")

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )
    # LiteLLM is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(max(numeric_level, logging.WARNING))


def validate_config(config: ReviewerConfig) -> bool:
    """Validate that all required configuration is present."""
    missing = config.missing_settings()
    if missing:
        logger.error(f"Missing required configuration for provider '{config.scm_provider}': {missing}")
        return False
    return True


def build_sources(config: ReviewerConfig) -> Tuple[PullRequestStore, DiffProvider, str]:
    """Returns the PR store, diff provider and PR id selected by config.scm_provider."""
    if config.scm_provider == "github":
        client = GitHubSCMClient(config)
        return client, client, str(config.pr_number)

    store = InMemoryPullRequestStore()
    store.add(PullRequestInfo(
        pr_id=LOCAL_PR_ID,
        title=config.pr_title or f"Merge {config.source_branch} into {config.target_branch}",
        description=config.pr_description,
        source_branch=config.source_branch or "",
        target_branch=config.target_branch or "",
        repository=os.path.abspath(config.repo_path) if config.repo_path else None,
    ))
    return store, LocalGitDiffProvider(), LOCAL_PR_ID


async def async_main() -> int:
    """
    Asynchronous main function: reviews one pull request and prints each
    comment as a JSON line on stdout.
    """
    config = load_reviewer_config()
    setup_logging(config.log_level) # Configure logging early

    logger.info("Starting AI code reviewer...")
    logger.info(f"Version: {getattr(__import__('codefusion_reviewer'), '__version__', 'N/A')}")

    if not validate_config(config):
        logger.critical("Configuration validation failed. Cannot proceed.")
        return 1

    pr_store, diff_provider, pr_id = build_sources(config)
    service = CodeReviewService(
        pr_store,
        diff_provider,
        LLMReviewer(config),
        include_patterns=config.include_patterns,
        exclude_patterns=config.exclude_patterns,
        max_patch_length=config.max_patch_length,
        overall_diff_max_length=config.overall_diff_max_length,
    )

    count = 0
    try:
        async for comment in service.analyze_pr(pr_id):
            print(json.dumps(comment.to_dict(), ensure_ascii=False), flush=True)
            count += 1
    except ReviewSourceError as e:
        logger.error(f"Could not load pull request {pr_id}: {e}")
        return 1
    except Exception as e:
        logger.critical(f"Unhandled exception during review: {e}", exc_info=True)
        return 1

    logger.info(f"AI code review finished, {count} comments generated.")
    return 0


def main_cli():
    """
    CLI entry point. Loads .env for local dev.
    """
    # In CI the variables are injected by the system; .env is for local runs.
    if os.path.exists(".env"):
        load_dotenv(override=True)

    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Review interrupted by user (KeyboardInterrupt).")
        return 130 # Standard exit code for Ctrl+C


if __name__ == "__main__":
    sys.exit(main_cli())

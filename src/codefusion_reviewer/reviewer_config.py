# src/codefusion_reviewer/reviewer_config.py
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .prompt_builder import MAX_PATCH_LENGTH, OVERALL_DIFF_MAX_LENGTH

logger = logging.getLogger(__name__)

# Default values for optional parameters
DEFAULT_LLM_MODEL = "anthropic/claude-3-5-sonnet-20240620"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096
DEFAULT_LLM_TIMEOUT = 120.0
DEFAULT_SCM_PROVIDER = "local"
DEFAULT_SCM_API_URL = "https://api.github.com"
DEFAULT_LOG_LEVEL = "INFO"

VALID_SCM_PROVIDERS = ("local", "github")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_patterns(value: str) -> List[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


@dataclass
class ReviewerConfig:
    """
    Holds all configuration for the reviewer,
    primarily sourced from REVIEWER_ prefixed environment variables.
    """

    # --- LLM Settings ---
    llm_model: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_LLM_MODEL", DEFAULT_LLM_MODEL)
    )
    llm_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_LLM_API_KEY")
    )
    llm_api_base: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_LLM_API_BASE")
    )
    temperature: float = field(
        default_factory=lambda: float(os.getenv("REVIEWER_TEMPERATURE", str(DEFAULT_TEMPERATURE)))
    )
    max_tokens: int = field(
        default_factory=lambda: int(os.getenv("REVIEWER_MAX_TOKENS", str(DEFAULT_MAX_TOKENS)))
    )
    llm_timeout: float = field(
        default_factory=lambda: float(os.getenv("REVIEWER_LLM_TIMEOUT", str(DEFAULT_LLM_TIMEOUT)))
    )

    # --- Prompt size limits ---
    max_patch_length: int = field(
        default_factory=lambda: int(os.getenv("REVIEWER_MAX_PATCH_LENGTH", str(MAX_PATCH_LENGTH)))
    )
    overall_diff_max_length: int = field(
        default_factory=lambda: int(os.getenv("REVIEWER_OVERALL_DIFF_MAX_LENGTH", str(OVERALL_DIFF_MAX_LENGTH)))
    )

    # --- Diff source ---
    scm_provider: str = field(
        default_factory=lambda: os.getenv("REVIEWER_SCM_PROVIDER", DEFAULT_SCM_PROVIDER).lower()
    )
    scm_token: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_SCM_TOKEN")
    )
    scm_api_url: str = field(
        default_factory=lambda: os.getenv("REVIEWER_SCM_API_URL", DEFAULT_SCM_API_URL).rstrip("/")
    )
    repo_path: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_REPO_PATH")
    )
    repo_full_name: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_REPO_FULL_NAME")
    ) # "owner/name", used by the github provider

    # --- Pull request ---
    pr_number: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_PR_NUMBER")
    )
    pr_title: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_PR_TITLE")
    )
    pr_description: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_PR_DESCRIPTION")
    )
    source_branch: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_SOURCE_BRANCH")
    )
    target_branch: Optional[str] = field(
        default_factory=lambda: os.getenv("REVIEWER_TARGET_BRANCH")
    )

    # --- Behavior ---
    include_patterns: List[str] = field(
        default_factory=lambda: _split_patterns(os.getenv("REVIEWER_INCLUDE_PATTERNS", ""))
    )
    exclude_patterns: List[str] = field(
        default_factory=lambda: _split_patterns(os.getenv("REVIEWER_EXCLUDE_PATTERNS", ""))
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("REVIEWER_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    )

    def __post_init__(self):
        if not self.llm_model:
            logger.warning("REVIEWER_LLM_MODEL is not set.")

        if self.scm_provider not in VALID_SCM_PROVIDERS:
            logger.warning(f"Invalid REVIEWER_SCM_PROVIDER '{self.scm_provider}'. Defaulting to '{DEFAULT_SCM_PROVIDER}'.")
            self.scm_provider = DEFAULT_SCM_PROVIDER

        if self.scm_provider == "github" and not self.scm_token:
            logger.warning("REVIEWER_SCM_TOKEN is not set; GitHub requests will be unauthenticated.")

        if self.log_level not in VALID_LOG_LEVELS:
            logger.warning(f"Invalid REVIEWER_LOG_LEVEL '{self.log_level}'. Defaulting to '{DEFAULT_LOG_LEVEL}'.")
            self.log_level = DEFAULT_LOG_LEVEL

    def missing_settings(self) -> List[str]:
        """Names of the settings the selected provider needs but does not have."""
        required = ["llm_model", "source_branch", "target_branch"]
        if self.scm_provider == "github":
            required = ["llm_model", "repo_full_name", "pr_number"]
        else:
            required.append("repo_path")
        return [name for name in required if not getattr(self, name, None)]


def load_reviewer_config() -> ReviewerConfig:
    """
    Factory function to create and return a ReviewerConfig instance.
    """
    return ReviewerConfig()

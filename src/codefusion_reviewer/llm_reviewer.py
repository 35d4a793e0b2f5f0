# src/codefusion_reviewer/llm_reviewer.py
import json
import logging
from typing import Any, AsyncIterator, Dict, List, TYPE_CHECKING

import litellm  # type: ignore

from .models import CommentKind, ReviewComment
from .response_decoder import decode_response_stream

if TYPE_CHECKING:
    from .reviewer_config import ReviewerConfig

logger = logging.getLogger(__name__)


class LLMReviewer:
    def __init__(self, config: 'ReviewerConfig'):
        """
        Initializes the LLMReviewer.

        Args:
            config: The reviewer configuration object.
        """
        self.config = config

    def _completion_kwargs(self, prompt: str) -> Dict[str, Any]:
        kwargs_for_litellm: Dict[str, Any] = {
            "model": self.config.llm_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "timeout": self.config.llm_timeout,
            "stream": True,
        }
        if self.config.llm_api_key:
            kwargs_for_litellm["api_key"] = self.config.llm_api_key
        if self.config.llm_api_base:
            kwargs_for_litellm["api_base"] = self.config.llm_api_base
        return kwargs_for_litellm

    async def stream_review_text(self, prompt: str) -> AsyncIterator[str]:
        """
        Sends one prompt to the model and yields the text deltas as they arrive.
        Errors from the call are raised to the consumer of the stream.
        """
        if not self.config.llm_model:
            raise ValueError("LLM model is not configured.")

        kwargs_for_litellm = self._completion_kwargs(prompt)
        logger.info(f"Sending review request to LLM, model: {self.config.llm_model}, prompt length: {len(prompt)}")
        if logger.isEnabledFor(logging.DEBUG):
            # Avoid logging potentially large messages payload unless DEBUG is on
            debug_kwargs = {k: (v if k not in ("messages", "api_key") else "[REDACTED]") for k, v in kwargs_for_litellm.items()}
            logger.debug(f"LiteLLM Request kwargs: {json.dumps(debug_kwargs, indent=2, default=str)}")

        response = await litellm.acompletion(**kwargs_for_litellm)
        async for chunk in response:
            choices = getattr(chunk, "choices", None)
            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            content = getattr(delta, "content", None) if delta is not None else None
            if content:
                yield content

    async def get_review_comments(
        self,
        prompt: str,
        default_kind: CommentKind = CommentKind.GENERAL,
    ) -> List[ReviewComment]:
        """
        Gets AI review comments for a prompt.

        Returns:
            Decoded candidate comments. Never raises: a failed call yields a
            single GENERAL/LOW comment describing the error.
        """
        comments = await decode_response_stream(self.stream_review_text(prompt), default_kind)
        logger.info(f"Received {len(comments)} candidate review comments from LLM.")
        return comments

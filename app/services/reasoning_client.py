import logging
from typing import Optional

import anthropic
import httpx

from app.core.config import settings
from app.core.exceptions import AnalysisError

logger = logging.getLogger(__name__)


class AnthropicReasoningClient:
    """Thin wrapper over ``anthropic.AsyncAnthropic`` for the script analyzer.

    Only what the analyzer needs: one system prompt, one user message,
    text back.  Every SDK failure is raised as :class:`AnalysisError` so
    the sync workflow can record it.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.ANTHROPIC_API_KEY
        self._model = model or settings.ANTHROPIC_MODEL
        self._base_url = base_url or settings.ANTHROPIC_BASE_URL
        self._max_tokens = max_tokens or settings.ANALYSIS_MAX_TOKENS
        self._temperature = (
            temperature if temperature is not None else settings.ANALYSIS_TEMPERATURE
        )
        self._timeout = timeout or settings.ANALYSIS_TIMEOUT_SECONDS
        self._max_retries = (
            max_retries if max_retries is not None else settings.ANALYSIS_MAX_RETRIES
        )
        self._http_client = http_client

    @property
    def model(self) -> str:
        return self._model

    def _build_client(self) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=self._timeout,
            max_retries=self._max_retries,
            http_client=self._http_client,
        )

    async def complete(self, system: str, prompt: str) -> str:
        """Send one prompt and return the concatenated text response."""
        if not self._api_key:
            raise AnalysisError(
                "Reasoning service is not configured (ANTHROPIC_API_KEY is empty)"
            )

        try:
            async with self._build_client() as client:
                message = await client.messages.create(
                    model=self._model,
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                    system=system,
                    messages=[{"role": "user", "content": prompt}],
                )
        except anthropic.APITimeoutError:
            logger.error("Reasoning service timed out after %ss", self._timeout)
            raise AnalysisError("Reasoning service timed out")
        except anthropic.APIConnectionError as exc:
            logger.error("Reasoning service unreachable: %s", exc)
            raise AnalysisError("Reasoning service unavailable")
        except anthropic.APIStatusError as exc:
            logger.error(
                "Reasoning service returned %s: %s", exc.status_code, exc.message
            )
            raise AnalysisError(f"Reasoning service returned {exc.status_code}")
        except anthropic.APIError as exc:
            logger.error("Reasoning service response was unusable: %s", exc)
            raise AnalysisError("Reasoning service returned an invalid response")

        # A body the SDK could not parse comes back without content blocks
        text = "".join(
            block.text
            for block in getattr(message, "content", None) or []
            if getattr(block, "type", None) == "text"
        )
        if getattr(message, "stop_reason", None) == "max_tokens":
            logger.warning(
                "Reasoning response truncated at %d tokens", self._max_tokens
            )
        if not text.strip():
            raise AnalysisError("Reasoning service returned an empty response")
        return text

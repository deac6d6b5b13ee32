"""
Scoring oracle: the external language model that does the natural-language
scoring, and the adapter that builds its request from the rubric.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import httpx

from cvmatch.helpers.prompts import build_system_prompt, build_user_prompt
from cvmatch.models.match import NormalizedInput, RawOracleResponse
from cvmatch.models.rubric import ScoringRubric
from cvmatch.models.settings import MatchSettings
from cvmatch.utils.exceptions import (
    ConfigurationError,
    OracleTimeout,
    OracleUnavailable,
    QuotaExhausted,
    RateLimited,
    TransportError,
)
from cvmatch.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)

Messages = List[Dict[str, str]]


class ScoringOracle(ABC):
    """Untrusted, non-deterministic chat model: messages in, raw text out"""

    @abstractmethod
    async def complete(self, messages: Messages) -> RawOracleResponse:
        """Send one chat request; raise an OracleError subclass on failure"""


class ChatCompletionOracle(ScoringOracle):
    """OpenAI-compatible /chat/completions endpoint reached over httpx"""

    def __init__(self, settings: MatchSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not settings.api_key.get_secret_value():
            raise ConfigurationError("Oracle API key is not configured", config_key="ORACLE_API_KEY")
        self.settings = settings
        self._transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }

    def _body(self, messages: Messages) -> dict:
        body = {"model": self.settings.model_name, "messages": messages}
        if self.settings.temperature is not None:
            body["temperature"] = self.settings.temperature
        return body

    async def complete(self, messages: Messages) -> RawOracleResponse:
        url = self.settings.completions_url
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout, transport=self._transport) as client:
                response = await client.post(url, headers=self.headers, json=self._body(messages))
        except httpx.TimeoutException as e:
            raise OracleTimeout(self.settings.request_timeout, cause=e) from e
        except httpx.HTTPError as e:
            logger.error(f"Oracle request to {url} failed: {e}")
            raise TransportError(f"AI gateway unreachable: {e.__class__.__name__}", cause=e) from e

        self._raise_for_status(response)

        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TransportError(
                "AI gateway returned an unexpected response envelope",
                upstream_status=response.status_code,
                cause=e,
            ) from e

        logger.debug(f"Oracle answered {response.status_code} with {len(content)} chars")
        return RawOracleResponse(
            content=content,
            model=payload.get("model") or self.settings.model_name,
            status_code=response.status_code,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if response.is_success:
            return
        if status == 429:
            raise RateLimited(upstream_status=status)
        if status == 402:
            raise QuotaExhausted(upstream_status=status)

        logger.error(f"AI gateway error: {status} {response.text[:500]}")
        if status >= 500:
            raise OracleUnavailable(upstream_status=status)
        raise TransportError(upstream_status=status)


class ScoringOracleAdapter:
    """Builds the fixed scoring request and performs exactly one oracle call"""

    def __init__(self, oracle: ScoringOracle, settings: MatchSettings):
        self.oracle = oracle
        self.settings = settings

    def build_messages(self, normalized: NormalizedInput, rubric: ScoringRubric) -> Messages:
        return [
            {"role": "system", "content": build_system_prompt(rubric)},
            {"role": "user", "content": build_user_prompt(normalized.cv_payload, normalized.job_text)},
        ]

    async def invoke(self, normalized: NormalizedInput, rubric: ScoringRubric) -> RawOracleResponse:
        messages = self.build_messages(normalized, rubric)
        logger.info(f"Invoking scoring oracle (model={self.settings.model_name}, rubric={rubric.version})")
        with PerformanceMonitor("Scoring oracle call", logger, threshold_ms=15000):
            return await self.oracle.complete(messages)

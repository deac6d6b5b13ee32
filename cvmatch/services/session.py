"""
Match Session Controller - drives one analysis through
Normalize -> Invoke -> Validate -> Reconcile and classifies every failure.
"""
import asyncio
import uuid
from enum import Enum
from typing import List, Optional

import httpx

from cvmatch.models.cv import CVDocument
from cvmatch.models.match import InputReport, MatchResult, NormalizedInput, RawOracleResponse
from cvmatch.models.rubric import DEFAULT_RUBRIC, ScoringRubric
from cvmatch.models.settings import MatchSettings
from cvmatch.services.aggregator import reconcile
from cvmatch.services.normalizer import normalize
from cvmatch.services.oracle import ChatCompletionOracle, ScoringOracleAdapter
from cvmatch.services.validator import validate
from cvmatch.utils.exceptions import (
    AnalysisCancelled,
    CVMatchBaseException,
    FailureReason,
    OracleTimeout,
    ProcessingError,
    SessionStateError,
)
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    INVOKING = "invoking"
    VALIDATING = "validating"
    RECONCILING = "reconciling"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATES = {SessionState.COMPLETE, SessionState.FAILED}

_NEXT = {
    SessionState.IDLE: SessionState.NORMALIZING,
    SessionState.NORMALIZING: SessionState.INVOKING,
    SessionState.INVOKING: SessionState.VALIDATING,
    SessionState.VALIDATING: SessionState.RECONCILING,
    SessionState.RECONCILING: SessionState.COMPLETE,
}


class MatchSession:
    """One analysis request. Runs at most once; immutable once terminal."""

    def __init__(self, adapter: ScoringOracleAdapter, settings: MatchSettings):
        self.session_id = uuid.uuid4().hex[:12]
        self.state = SessionState.IDLE
        self.history: List[SessionState] = [SessionState.IDLE]
        self.result: Optional[MatchResult] = None
        self.failure: Optional[CVMatchBaseException] = None
        self.input_report: Optional[InputReport] = None
        self._adapter = adapter
        self._settings = settings
        self._inflight: Optional[asyncio.Task] = None
        self._cancel_requested = False

    @property
    def failure_reason(self) -> Optional[FailureReason]:
        return self.failure.reason if self.failure else None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def _transition(self, new_state: SessionState) -> None:
        allowed = new_state == SessionState.FAILED or _NEXT.get(self.state) == new_state
        if self.is_terminal or not allowed:
            raise SessionStateError(f"Illegal transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Session {self.session_id}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _fail(self, exc: CVMatchBaseException) -> None:
        stage = self.state.value
        self.failure = exc
        self._transition(SessionState.FAILED)
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"Session {self.session_id} failed while {stage}: {exc.reason.value} - {exc.message}",
            extra={"session_id": self.session_id, "failure": exc.to_dict()}
        )

    def cancel(self) -> bool:
        """Abort the analysis. Returns False when it is already finished."""
        if self.is_terminal:
            return False
        if self.state == SessionState.IDLE:
            self._fail(AnalysisCancelled())
            return True
        if self._inflight is not None and self._inflight.cancel():
            self._cancel_requested = True
            return True
        return False

    async def _invoke(self, normalized: NormalizedInput, rubric: ScoringRubric) -> RawOracleResponse:
        timeout = self._settings.request_timeout
        self._inflight = asyncio.ensure_future(self._adapter.invoke(normalized, rubric))
        try:
            return await asyncio.wait_for(self._inflight, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise OracleTimeout(timeout, cause=e) from e
        except asyncio.CancelledError:
            if self._cancel_requested:
                raise AnalysisCancelled() from None
            raise
        finally:
            self._inflight = None

    async def run(self, cv: CVDocument, job_text: str, rubric: ScoringRubric = DEFAULT_RUBRIC) -> MatchResult:
        """Drive the full state machine; returns the result or raises a typed error"""
        if self.state != SessionState.IDLE:
            raise SessionStateError(f"Session {self.session_id} already used (state {self.state.value})")

        try:
            self._transition(SessionState.NORMALIZING)
            normalized = normalize(cv, job_text, self._settings)

            self._transition(SessionState.INVOKING)
            raw = await self._invoke(normalized, rubric)

            self._transition(SessionState.VALIDATING)
            validated = validate(raw, rubric)

            self._transition(SessionState.RECONCILING)
            result = reconcile(validated, rubric, tolerance=self._settings.score_tolerance)
        except asyncio.CancelledError:
            self._fail(AnalysisCancelled())
            raise
        except CVMatchBaseException as exc:
            self._fail(exc)
            raise
        except SessionStateError:
            raise
        except Exception as exc:
            wrapped = ProcessingError(
                f"Unexpected error while {self.state.value}",
                stage=self.state.value,
                cause=exc,
            )
            self._fail(wrapped)
            raise wrapped from exc

        self.result = result
        self.input_report = normalized.report()
        self._transition(SessionState.COMPLETE)
        logger.info(f"Session {self.session_id} complete: overallScore={result.overall_score}")
        return result


class MatchController:
    """Entry point for analyses; every call gets a fresh session"""

    def __init__(self, adapter: ScoringOracleAdapter, settings: MatchSettings):
        self.adapter = adapter
        self.settings = settings

    def new_session(self) -> MatchSession:
        return MatchSession(self.adapter, self.settings)

    async def analyze(self, cv: CVDocument, job_text: str, rubric: ScoringRubric = DEFAULT_RUBRIC) -> MatchResult:
        return await self.new_session().run(cv, job_text, rubric)


def build_controller(settings: MatchSettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> MatchController:
    """Controller talking to the configured chat-completions gateway"""
    oracle = ChatCompletionOracle(settings, transport=transport)
    return MatchController(ScoringOracleAdapter(oracle, settings), settings)

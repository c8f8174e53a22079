import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from app.settings import (
    EXEC_COMPILE_TIMEOUT_MS,
    EXEC_HTTP_TIMEOUT_SECONDS,
    EXEC_MAX_RETRIES,
    EXEC_RETRY_BACKOFF_SECONDS,
    EXEC_RUN_TIMEOUT_MS,
    EXECUTION_SERVICE_URL,
    MAX_CODE_LENGTH,
)
from domain.errors import ValidationError
from domain.records import OutcomeKind
from infra.utils.stdin_normalizer import normalize_stdin
from .languages import LanguageRuntime, get_language

logger = logging.getLogger(__name__)


class ExecutionServiceError(Exception):
    """Transport failure, non-2xx status or unusable response body."""


@dataclass
class ExecutionOutcome:
    """Normalized result of one execution attempt"""
    stdout: str
    error_text: Optional[str]
    elapsed_time: float
    kind: OutcomeKind

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS


class ExecutionClient:
    """Client for a Piston-compatible code execution service.

    One `execute` call = one (code, language, stdin) run. Transport errors and
    non-2xx responses are retried `max_retries` times with a fixed backoff;
    after that the outcome degrades to `service_unavailable` instead of raising.
    """

    def __init__(
        self,
        base_url: str = EXECUTION_SERVICE_URL,
        compile_timeout_ms: int = EXEC_COMPILE_TIMEOUT_MS,
        run_timeout_ms: int = EXEC_RUN_TIMEOUT_MS,
        http_timeout: float = EXEC_HTTP_TIMEOUT_SECONDS,
        max_retries: int = EXEC_MAX_RETRIES,
        retry_backoff: float = EXEC_RETRY_BACKOFF_SECONDS,
        max_code_length: int = MAX_CODE_LENGTH,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.compile_timeout_ms = compile_timeout_ms
        self.run_timeout_ms = run_timeout_ms
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff
        self.max_code_length = max_code_length
        self._sleep = sleep
        self._client = httpx.Client(base_url=self.base_url, timeout=http_timeout, transport=transport)
        logger.info(f"Using execution service at: {self.base_url}")

    def close(self) -> None:
        self._client.close()

    def validate(self, code: str, language: str) -> LanguageRuntime:
        """Reject input before anything is sent out."""
        if not code:
            raise ValidationError("code is required")
        if len(code) > self.max_code_length:
            raise ValidationError(f"Code is too long (max {self.max_code_length} characters)")
        runtime = get_language(language)
        if runtime is None:
            raise ValidationError("Unsupported programming language")
        return runtime

    def execute(self, code: str, language: str, stdin: Optional[str] = None) -> ExecutionOutcome:
        runtime = self.validate(code, language)
        payload = {
            "language": runtime.runtime,
            "version": runtime.version,
            "files": [{"name": runtime.file_name, "content": code}],
            "stdin": normalize_stdin(stdin),
            "args": [],
            "compile_timeout": self.compile_timeout_ms,
            "run_timeout": self.run_timeout_ms,
        }

        last_error: Optional[str] = None
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            start_time = time.monotonic()
            try:
                data = self._post(payload)
                return self.classify(data, time.monotonic() - start_time)
            except ExecutionServiceError as e:
                last_error = str(e)
                logger.warning(f"Execution attempt {attempt}/{attempts} failed: {last_error}")
                if attempt < attempts:
                    self._sleep(self.retry_backoff)

        logger.error(f"Execution service unavailable after {attempts} attempts")
        return ExecutionOutcome(
            stdout="",
            error_text=last_error or "Code execution service unavailable",
            elapsed_time=0.0,
            kind=OutcomeKind.SERVICE_UNAVAILABLE,
        )

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self._client.post("/execute", json=payload)
        except httpx.HTTPError as e:
            raise ExecutionServiceError(f"Connection to execution service failed: {e}") from e

        if not resp.is_success:
            raise ExecutionServiceError(f"Execution service HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ExecutionServiceError("Execution service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ExecutionServiceError("Execution service returned an unexpected payload")
        return data

    @staticmethod
    def classify(data: Dict[str, Any], measured_time: float = 0.0) -> ExecutionOutcome:
        """Map the service's compile/run stages onto a single outcome."""
        compile_stage = data.get("compile")
        if isinstance(compile_stage, dict):
            code = compile_stage.get("code")
            if (code is not None and code != 0) or compile_stage.get("signal"):
                return ExecutionOutcome(
                    stdout="",
                    error_text=compile_stage.get("stderr") or compile_stage.get("output") or "Compilation failed",
                    elapsed_time=0.0,
                    kind=OutcomeKind.COMPILATION_ERROR,
                )

        run_stage = data.get("run")
        if not isinstance(run_stage, dict):
            raise ExecutionServiceError("Execution service response has no run stage")

        stdout = run_stage.get("stdout") or ""
        elapsed = _elapsed_seconds(run_stage, measured_time)
        exit_code = run_stage.get("code")
        signal = run_stage.get("signal")

        if run_stage.get("status") == "TO" or (signal == "SIGKILL" and exit_code is None):
            return ExecutionOutcome(
                stdout=stdout,
                error_text=run_stage.get("stderr") or "Time limit exceeded",
                elapsed_time=elapsed,
                kind=OutcomeKind.TIME_LIMIT_EXCEEDED,
            )

        if exit_code != 0:
            detail = f"signal {signal}" if signal else f"exit code {exit_code}"
            return ExecutionOutcome(
                stdout=stdout,
                error_text=run_stage.get("stderr") or f"Process terminated with {detail}",
                elapsed_time=elapsed,
                kind=OutcomeKind.RUNTIME_ERROR,
            )

        return ExecutionOutcome(stdout=stdout, error_text=None, elapsed_time=elapsed, kind=OutcomeKind.SUCCESS)


def _elapsed_seconds(run_stage: Dict[str, Any], measured_time: float) -> float:
    # "time" (seconds) per the documented contract; newer services report wall_time in ms
    for key, scale in (("time", 1.0), ("wall_time", 0.001)):
        value = run_stage.get(key)
        if value is not None:
            try:
                return float(value) * scale
            except (TypeError, ValueError):
                break
    return round(measured_time, 4)


__all__ = ["ExecutionClient", "ExecutionOutcome", "ExecutionServiceError"]

"""Timeout-bounded, retrying, bounded-parallel tool execution.

Every public method returns :class:`ToolExecutionResult` objects; tool
failures are classified and reported in the result, never raised.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from agentflow.config.tools import ToolSettings
from agentflow.core.backoff import backoff_delay
from agentflow.core.time_utils import utc_now
from agentflow.domain.exceptions import ToolNotFoundError, ToolTimeoutError, ToolValidationError
from agentflow.tools.cache import ResultCache, cache_key
from agentflow.tools.errors import classify_error, error_suggestions, is_retryable
from agentflow.tools.models import (
    DataQuality,
    ResultMetadata,
    ToolCall,
    ToolConfig,
    ToolExecutionResult,
)
from agentflow.tools.params import parse_tool_params
from agentflow.tools.validation import validate_tool_params

if TYPE_CHECKING:
    from agentflow.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8

CallLike = ToolCall | Mapping[str, Any] | tuple[str, dict[str, Any]]


def assess_data_quality(raw: Any) -> DataQuality:
    """Weighted completeness heuristic for a tool's raw output."""
    if not isinstance(raw, Mapping):
        return DataQuality.LOW if raw is None else DataQuality.MEDIUM

    score = 0
    confidence = raw.get("confidence")
    if isinstance(confidence, int | float) and confidence > 0.8:
        score += 3
    elif isinstance(confidence, int | float) and confidence > 0.5:
        score += 2
    else:
        score += 1
    if raw.get("data") or raw.get("extracted_data"):
        score += 2
    if raw.get("metadata"):
        score += 1
    if raw.get("suggestions"):
        score += 1

    if score >= 6:
        return DataQuality.HIGH
    if score >= 4:
        return DataQuality.MEDIUM
    return DataQuality.LOW


def result_confidence(raw: Any) -> float:
    if isinstance(raw, Mapping):
        for key in ("confidence", "extraction_confidence"):
            value = raw.get(key)
            if isinstance(value, int | float) and not isinstance(value, bool) and value:
                return max(0.0, min(1.0, float(value)))
    return DEFAULT_CONFIDENCE


def _as_call(call: CallLike) -> ToolCall:
    if isinstance(call, ToolCall):
        return call
    if isinstance(call, tuple):
        name, params = call
        return ToolCall(name=name, params=params)
    return ToolCall(name=call["name"], params=dict(call.get("params") or {}))


def _consume_task_result(task: asyncio.Future[Any]) -> None:
    # Abandoned tasks may still fail later; retrieve the exception so it is not reported.
    if not task.cancelled():
        task.exception()


class ToolExecutor:
    def __init__(
        self,
        registry: ToolRegistry,
        settings: ToolSettings | None = None,
        cache: ResultCache | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.settings = settings or ToolSettings()
        self.cache = cache or ResultCache(ttl_seconds=self.settings.cache_ttl_sec)
        self._sleep = sleep

    def _effective_config(self, name: str, override: ToolConfig | None) -> ToolConfig:
        config = self.registry.get_config(name)
        if override is None:
            return config
        return config.model_copy(update=override.model_dump(exclude_unset=True))

    def _failure(
        self,
        name: str,
        error: BaseException,
        started: float,
        attempts: int = 1,
    ) -> ToolExecutionResult:
        error_type = classify_error(error)
        message = getattr(error, "message", None) or str(error) or type(error).__name__
        if isinstance(error, ToolValidationError) and error.errors:
            message = f"{message}: {'; '.join(error.errors)}"
        return ToolExecutionResult(
            tool_name=name,
            success=False,
            error=message,
            error_type=error_type,
            confidence=0.0,
            execution_time=int((time.perf_counter() - started) * 1000),
            metadata=ResultMetadata(
                extracted_at=utc_now().isoformat(),
                data_quality=DataQuality.LOW,
                attempts=attempts,
            ),
            suggestions=error_suggestions(error_type),
        )

    async def _run_with_timeout(self, name: str, coro: Awaitable[Any], timeout: float) -> Any:
        task = asyncio.ensure_future(coro)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            task.cancel()
            task.add_done_callback(_consume_task_result)
            msg = f"Tool {name} timed out after {timeout:g}s"
            raise ToolTimeoutError(msg, {"tool": name, "timeout": timeout})
        return task.result()

    async def execute_safely(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        config: ToolConfig | None = None,
    ) -> ToolExecutionResult:
        """Run one tool call, racing it against the tool's timeout.

        Returns within roughly ``timeout`` seconds even if the tool never
        resolves; the abandoned call is cancelled.
        """
        params = dict(params or {})
        started = time.perf_counter()
        try:
            definition = self.registry.get_by_name(name)
            executor = self.registry.get_executor(name)
            if executor is None:
                msg = f"No executor registered for tool: {name}"
                raise ToolNotFoundError(msg, {"tool": name})
            effective = self._effective_config(name, config)

            problems = validate_tool_params(definition, params)
            if problems:
                msg = f"Invalid parameters for {name}"
                raise ToolValidationError(msg, problems)
            typed_params = parse_tool_params(name, params)

            key = cache_key(name, params)
            if effective.cache:
                cached = self.cache.get(key)
                if cached is not None:
                    logger.debug("tool_cache_hit", extra={"tool": name})
                    return cached.model_copy(
                        update={
                            "metadata": cached.metadata.model_copy(update={"cached": True}),
                        }
                    )

            raw = await self._run_with_timeout(name, executor(typed_params), effective.timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            result = self._failure(name, exc, started)
            logger.warning(
                "tool_execution_failed",
                extra={
                    "tool": name,
                    "error_type": result.error_type.value if result.error_type else None,
                    "error": result.error,
                    "execution_time_ms": result.execution_time,
                },
            )
            return result

        suggestions = raw.get("suggestions") if isinstance(raw, Mapping) else None
        result = ToolExecutionResult(
            tool_name=name,
            success=True,
            data=raw,
            confidence=result_confidence(raw),
            execution_time=int((time.perf_counter() - started) * 1000),
            metadata=ResultMetadata(
                extracted_at=utc_now().isoformat(),
                data_quality=assess_data_quality(raw),
            ),
            suggestions=[str(s) for s in suggestions] if isinstance(suggestions, list) else [],
        )
        if effective.cache:
            self.cache.set(key, result)
        logger.info(
            "tool_execution_succeeded",
            extra={
                "tool": name,
                "execution_time_ms": result.execution_time,
                "data_quality": result.metadata.data_quality.value,
            },
        )
        return result

    async def execute_tools_in_parallel(
        self, calls: Sequence[CallLike]
    ) -> list[ToolExecutionResult]:
        """Run all calls at once; results keep the order of ``calls``."""
        normalized = [_as_call(call) for call in calls]
        results = await asyncio.gather(
            *(self.execute_safely(call.name, call.params) for call in normalized)
        )
        logger.info(
            "tool_parallel_completed",
            extra={"total": len(results), "succeeded": sum(1 for r in results if r.success)},
        )
        return list(results)

    async def execute_batch(
        self,
        calls: Sequence[CallLike],
        max_parallel: int | None = None,
        with_retry: bool = False,
    ) -> list[ToolExecutionResult]:
        """Run calls with at most ``max_parallel`` in flight.

        Tools configured with ``parallel=False`` additionally run one at a
        time. Results keep the order of ``calls``.
        """
        normalized = [_as_call(call) for call in calls]
        semaphore = asyncio.Semaphore(max_parallel or self.settings.max_parallel)
        serial_lock = asyncio.Lock()

        async def run(call: ToolCall) -> ToolExecutionResult:
            runner = self.execute_with_retry if with_retry else self.execute_safely
            if call.name in self.registry and not self.registry.get_config(call.name).parallel:
                async with serial_lock, semaphore:
                    return await runner(call.name, call.params)
            async with semaphore:
                return await runner(call.name, call.params)

        return list(await asyncio.gather(*(run(call) for call in normalized)))

    async def execute_with_retry(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        max_retries: int | None = None,
    ) -> ToolExecutionResult:
        """Retry a call with capped exponential backoff.

        At most ``max_retries`` attempts are made (default: the tool's
        configured retries). Stops at the first success and does not retry
        failures that would repeat identically (invalid input, missing
        resource, permission).
        """
        if max_retries is None:
            max_retries = self.registry.get_config(name).retries if name in self.registry else 1
        attempts = max(1, max_retries)

        attempt = 1
        while True:
            result = await self.execute_safely(name, params)
            result = result.model_copy(
                update={"metadata": result.metadata.model_copy(update={"attempts": attempt})}
            )
            if result.success or attempt >= attempts or not is_retryable(result.error_type):
                return result
            delay = backoff_delay(
                attempt, self.settings.retry_base_delay_sec, self.settings.max_retry_delay_sec
            )
            logger.info(
                "tool_retry_scheduled",
                extra={
                    "tool": name,
                    "attempt": attempt,
                    "delay_sec": delay,
                    "error_type": result.error_type.value if result.error_type else None,
                },
            )
            await self._sleep(delay)
            attempt += 1

"""Tests for timeout-bounded, retrying tool execution."""

import asyncio
import time

import pytest

from agentflow.config.tools import ToolSettings
from agentflow.tools.executor import ToolExecutor, assess_data_quality
from agentflow.tools.models import (
    DataQuality,
    ToolCall,
    ToolCategory,
    ToolConfig,
    ToolDefinition,
    ToolErrorType,
)
from agentflow.tools.registry import ToolRegistry


def _definition(name, category=ToolCategory.UTILITY):
    return ToolDefinition(name=name, description=f"Test tool {name}", category=category)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def registry():
    return ToolRegistry(ToolSettings())


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def executor(registry, sleeper):
    return ToolExecutor(registry, ToolSettings(), sleep=sleeper)


class TestExecuteSafely:
    @pytest.mark.asyncio
    async def test_error_message_classified_as_timeout(self, registry, executor):
        async def always_times_out(params):
            raise Exception("ETIMEDOUT")

        registry.register(_definition("flaky"), always_times_out)

        result = await executor.execute_safely("flaky", {})

        assert result.success is False
        assert result.error_type == ToolErrorType.TIMEOUT
        assert result.error == "ETIMEDOUT"
        assert result.confidence == 0.0
        assert result.metadata.data_quality == DataQuality.LOW
        assert result.suggestions

    @pytest.mark.asyncio
    async def test_hanging_tool_is_abandoned_after_timeout(self, registry, executor):
        cancelled = asyncio.Event()

        async def hangs(params):
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        registry.register(_definition("hangs"), hangs, ToolConfig(timeout=0.05))

        started = time.perf_counter()
        result = await executor.execute_safely("hangs", {})
        elapsed = time.perf_counter() - started

        assert result.success is False
        assert result.error_type == ToolErrorType.TIMEOUT
        assert elapsed < 1.0
        await asyncio.wait_for(cancelled.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_unknown_tool_is_reported_not_raised(self, executor):
        result = await executor.execute_safely("does_not_exist", {})

        assert result.success is False
        assert result.error_type == ToolErrorType.NOT_FOUND

    @pytest.mark.asyncio
    async def test_tool_without_executor(self, registry, executor):
        registry.register(_definition("orphan"))

        result = await executor.execute_safely("orphan", {})

        assert result.error_type == ToolErrorType.NOT_FOUND
        assert "No executor registered" in result.error

    @pytest.mark.asyncio
    async def test_schema_violation_is_invalid_input(self, tool_executor, tool_service):
        result = await tool_executor.execute_safely("analyze_github", {})

        assert result.success is False
        assert result.error_type == ToolErrorType.INVALID_INPUT
        assert "Missing required parameter: username_or_url" in result.error
        assert tool_service.calls == []

    @pytest.mark.asyncio
    async def test_success_carries_data_confidence_and_quality(self, tool_executor):
        result = await tool_executor.execute_safely(
            "analyze_github", {"username_or_url": "octocat"}
        )

        assert result.success is True
        assert result.data["data"]["username"] == "octocat"
        assert result.confidence == 0.9
        assert result.metadata.data_quality == DataQuality.HIGH
        assert result.metadata.cached is False
        assert result.execution_time >= 0

    @pytest.mark.asyncio
    async def test_cacheable_tool_is_served_from_cache(self, tool_executor, tool_service):
        params = {"username_or_url": "octocat"}

        first = await tool_executor.execute_safely("analyze_github", params)
        second = await tool_executor.execute_safely("analyze_github", params)

        assert first.success and second.success
        assert second.metadata.cached is True
        assert tool_service.calls == [("analyze_github", "octocat")]

    @pytest.mark.asyncio
    async def test_executor_receives_typed_params(self, registry, executor):
        received = []

        async def echo(params):
            received.append(params)
            return {"confidence": 0.7, "data": {"text": params.text}}

        registry.register(
            ToolDefinition(
                name="extract_contact_info",
                description="Contact extraction",
                category=ToolCategory.UTILITY,
            ),
            echo,
        )

        result = await executor.execute_safely("extract_contact_info", {"text": "hi"})

        assert result.success
        assert received[0].text == "hi"
        assert result.confidence == 0.7


class TestExecuteWithRetry:
    @pytest.mark.asyncio
    async def test_retries_network_errors_with_backoff(self, registry, executor, sleeper):
        calls = {"count": 0}

        async def unreachable(params):
            calls["count"] += 1
            raise ConnectionError("connection refused")

        registry.register(_definition("unreachable"), unreachable)

        result = await executor.execute_with_retry("unreachable", {})

        assert result.success is False
        assert result.error_type == ToolErrorType.NETWORK
        assert calls["count"] == 3
        assert result.metadata.attempts == 3
        assert sleeper.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_explicit_max_retries(self, registry, executor):
        calls = {"count": 0}

        async def unreachable(params):
            calls["count"] += 1
            raise ConnectionError("connection refused")

        registry.register(_definition("unreachable"), unreachable)

        await executor.execute_with_retry("unreachable", {}, max_retries=1)

        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_stops_at_first_success(self, registry, executor, sleeper):
        calls = {"count": 0}

        async def recovers(params):
            calls["count"] += 1
            if calls["count"] == 1:
                raise TimeoutError("upstream timed out")
            return {"confidence": 0.9, "data": {"ok": True}}

        registry.register(_definition("recovers"), recovers)

        result = await executor.execute_with_retry("recovers", {})

        assert result.success is True
        assert result.metadata.attempts == 2
        assert sleeper.delays == [2.0]

    @pytest.mark.asyncio
    async def test_invalid_input_is_not_retried(self, registry, executor, sleeper):
        calls = {"count": 0}

        async def rejects(params):
            calls["count"] += 1
            raise ValueError("invalid handle")

        registry.register(_definition("rejects"), rejects)

        result = await executor.execute_with_retry("rejects", {})

        assert result.error_type == ToolErrorType.INVALID_INPUT
        assert calls["count"] == 1
        assert sleeper.delays == []


class TestBatchExecution:
    @pytest.mark.asyncio
    async def test_results_keep_call_order(self, registry, executor):
        def make(delay, value):
            async def run(params):
                await asyncio.sleep(delay)
                return {"data": {"value": value}}

            return run

        registry.register(_definition("slow"), make(0.05, "slow"))
        registry.register(_definition("fast"), make(0.0, "fast"))

        results = await executor.execute_batch(
            [ToolCall(name="slow"), {"name": "fast", "params": {}}, ("slow", {})]
        )

        assert [r.data["data"]["value"] for r in results] == ["slow", "fast", "slow"]

    @pytest.mark.asyncio
    async def test_parallelism_is_bounded(self, registry, executor):
        state = {"running": 0, "peak": 0}

        async def tracked(params):
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
            await asyncio.sleep(0.01)
            state["running"] -= 1
            return {"data": {}}

        registry.register(_definition("tracked"), tracked)

        results = await executor.execute_batch([("tracked", {})] * 6, max_parallel=2)

        assert len(results) == 6
        assert all(r.success for r in results)
        assert state["peak"] == 2

    @pytest.mark.asyncio
    async def test_non_parallel_tools_run_one_at_a_time(self, registry, executor):
        state = {"running": 0, "peak": 0}

        async def tracked(params):
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
            await asyncio.sleep(0.01)
            state["running"] -= 1
            return {"data": {}}

        registry.register(_definition("serial"), tracked, ToolConfig(parallel=False))

        await executor.execute_batch([("serial", {})] * 4, max_parallel=4)

        assert state["peak"] == 1

    @pytest.mark.asyncio
    async def test_failures_do_not_affect_other_calls(self, registry, executor):
        async def ok(params):
            return {"data": {"ok": True}}

        async def broken(params):
            raise RuntimeError("exploded")

        registry.register(_definition("ok"), ok)
        registry.register(_definition("broken"), broken)

        results = await executor.execute_tools_in_parallel([("broken", {}), ("ok", {})])

        assert [r.success for r in results] == [False, True]
        assert results[0].error_type == ToolErrorType.UNKNOWN


class TestDataQuality:
    def test_quality_levels(self):
        assert assess_data_quality(None) == DataQuality.LOW
        assert assess_data_quality("plain text") == DataQuality.MEDIUM
        assert assess_data_quality({}) == DataQuality.LOW
        assert assess_data_quality({"confidence": 0.6, "data": {"x": 1}}) == DataQuality.MEDIUM
        assert (
            assess_data_quality(
                {"confidence": 0.9, "data": {"x": 1}, "metadata": {"s": 1}, "suggestions": ["a"]}
            )
            == DataQuality.HIGH
        )

"""Tests for the built-in tool executors."""

import pytest

from agentflow.tools.builtins import seo_report
from agentflow.tools.models import ToolErrorType


class TestBuiltinExecutors:
    @pytest.mark.asyncio
    async def test_extract_contact_info_runs_offline(self, tool_executor, tool_service):
        result = await tool_executor.execute_safely(
            "extract_contact_info",
            {"text": "jane@example.com, https://github.com/jane, 5 years of Python"},
        )

        assert result.success
        data = result.data["data"]
        assert data["emails"] == ["jane@example.com"]
        assert data["github"] == "https://github.com/jane"
        assert data["years_experience"] == 5
        assert result.confidence == 0.9
        assert tool_service.calls == []

    @pytest.mark.asyncio
    async def test_social_media_platform_is_auto_detected(self, tool_executor):
        result = await tool_executor.execute_safely(
            "analyze_social_media", {"platform_url": "https://dribbble.com/jane"}
        )

        assert result.success
        assert result.data["data"]["platform"] == "dribbble"
        assert result.data["data"]["skills"] == ["Figma", "Prototyping"]

    @pytest.mark.asyncio
    async def test_social_links_filtered_by_platform(self, tool_executor):
        result = await tool_executor.execute_safely(
            "extract_social_links", {"url": "https://jane.dev", "platforms": ["github"]}
        )

        assert result.success
        assert result.data["data"]["social_links"] == {}
        assert result.data["confidence"] == 0.5

    @pytest.mark.asyncio
    async def test_seo_analysis_scores_page(self, tool_executor):
        result = await tool_executor.execute_safely(
            "analyze_webpage_seo", {"url": "https://jane.dev", "check_mobile": False}
        )

        assert result.success
        assert result.data["data"]["score"] == 100
        assert result.data["data"]["recommendations"] == []

    @pytest.mark.asyncio
    async def test_linkedin_pdf_export_is_parsed_as_document(self, tool_executor, tool_service):
        result = await tool_executor.execute_safely(
            "extract_linkedin",
            {
                "profile_url": "https://linkedin.com/in/jane",
                "data_source": "pdf_resume",
                "data_file": "JVBERg==",
            },
        )

        assert result.success
        assert tool_service.calls == [("parse_document", "pdf")]

    @pytest.mark.asyncio
    async def test_linkedin_without_access_is_permission_error(self, tool_executor):
        result = await tool_executor.execute_safely(
            "extract_linkedin", {"profile_url": "https://linkedin.com/in/jane"}
        )

        assert result.success is False
        assert result.error_type == ToolErrorType.PERMISSION

    @pytest.mark.asyncio
    async def test_missing_profile_is_not_found(self, tool_executor):
        result = await tool_executor.execute_with_retry(
            "analyze_github", {"username_or_url": "ghost"}
        )

        assert result.error_type == ToolErrorType.NOT_FOUND
        assert result.metadata.attempts == 1


class TestSeoReport:
    def test_missing_signals_become_recommendations(self):
        report = seo_report({"title": "Hi"}, check_mobile=True)

        assert report["checks"]["has_title"] is True
        assert report["checks"]["title_length_ok"] is False
        assert report["score"] == 17
        assert "Verify the page renders well on small screens" in report["recommendations"]

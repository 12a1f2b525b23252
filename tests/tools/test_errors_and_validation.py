"""Tests for error classification, schema validation and typed parameters."""

import asyncio

import httpx
import pytest

from agentflow.domain.exceptions import (
    ResourceNotFoundError,
    ToolTimeoutError,
    ToolValidationError,
)
from agentflow.tools.catalog import ANALYZE_GITHUB, PARSE_DOCUMENT, SCRAPE_WEBPAGE
from agentflow.tools.errors import classify_error, error_suggestions, is_retryable
from agentflow.tools.models import ToolErrorType
from agentflow.tools.params import AnalyzeGithubParams, GenericToolParams, parse_tool_params
from agentflow.tools.validation import validate_tool_params


def _status_error(status_code):
    request = httpx.Request("GET", "https://api.github.com/users/octocat")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("status error", request=request, response=response)


class TestClassifyError:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            ("ETIMEDOUT", ToolErrorType.TIMEOUT),
            (Exception("ETIMEDOUT"), ToolErrorType.TIMEOUT),
            (asyncio.TimeoutError(), ToolErrorType.TIMEOUT),
            (ToolTimeoutError("tool timed out"), ToolErrorType.TIMEOUT),
            (httpx.ConnectError("refused"), ToolErrorType.NETWORK),
            (Exception("ECONNREFUSED 127.0.0.1"), ToolErrorType.NETWORK),
            (PermissionError("nope"), ToolErrorType.PERMISSION),
            ("403 Forbidden", ToolErrorType.PERMISSION),
            (ResourceNotFoundError("missing"), ToolErrorType.NOT_FOUND),
            (ToolValidationError("bad"), ToolErrorType.INVALID_INPUT),
            (ValueError("whatever"), ToolErrorType.INVALID_INPUT),
            (RuntimeError("something odd"), ToolErrorType.UNKNOWN),
        ],
    )
    def test_classification(self, error, expected):
        assert classify_error(error) == expected

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (404, ToolErrorType.NOT_FOUND),
            (401, ToolErrorType.PERMISSION),
            (429, ToolErrorType.PERMISSION),
            (504, ToolErrorType.TIMEOUT),
            (502, ToolErrorType.NETWORK),
            (418, ToolErrorType.UNKNOWN),
        ],
    )
    def test_http_status_classification(self, status_code, expected):
        assert classify_error(_status_error(status_code)) == expected

    def test_every_error_type_has_suggestions(self):
        for error_type in ToolErrorType:
            assert error_suggestions(error_type)

    def test_retryability(self):
        assert is_retryable(ToolErrorType.TIMEOUT)
        assert is_retryable(ToolErrorType.NETWORK)
        assert is_retryable(ToolErrorType.UNKNOWN)
        assert not is_retryable(ToolErrorType.INVALID_INPUT)
        assert not is_retryable(ToolErrorType.NOT_FOUND)
        assert not is_retryable(ToolErrorType.PERMISSION)


class TestValidateToolParams:
    def test_valid_params(self):
        assert validate_tool_params(ANALYZE_GITHUB, {"username_or_url": "octocat"}) == []

    def test_missing_required(self):
        assert validate_tool_params(SCRAPE_WEBPAGE, {}) == ["Missing required parameter: url"]

    def test_type_mismatch(self):
        errors = validate_tool_params(
            ANALYZE_GITHUB, {"username_or_url": "octocat", "include_repos": "yes"}
        )

        assert errors == ["Parameter include_repos must be of type boolean"]

    def test_enum_violation(self):
        errors = validate_tool_params(
            PARSE_DOCUMENT, {"file_data": "eA==", "file_type": "exe"}
        )

        assert len(errors) == 1
        assert errors[0].startswith("Parameter file_type must be one of")

    def test_url_params_must_be_urls(self):
        assert validate_tool_params(SCRAPE_WEBPAGE, {"url": "not a url"}) == [
            "Parameter url must be a valid URL"
        ]

    def test_username_or_url_accepts_bare_names_but_checks_urls(self):
        assert validate_tool_params(ANALYZE_GITHUB, {"username_or_url": "github.com/x"}) == []
        assert validate_tool_params(ANALYZE_GITHUB, {"username_or_url": "javascript://x"}) == [
            "Parameter username_or_url must be a valid URL"
        ]

    def test_non_dict_params(self):
        assert validate_tool_params(ANALYZE_GITHUB, ["octocat"]) == ["Parameters must be an object"]


class TestParseToolParams:
    def test_typed_model_with_defaults(self):
        params = parse_tool_params("analyze_github", {"username_or_url": "octocat"})

        assert isinstance(params, AnalyzeGithubParams)
        assert params.include_repos is True
        assert params.repo_limit == 10

    def test_invalid_typed_params_raise(self):
        with pytest.raises(ToolValidationError) as exc_info:
            parse_tool_params("analyze_github", {"username_or_url": "octocat", "repo_limit": 0})

        assert exc_info.value.errors
        assert "repo_limit" in exc_info.value.errors[0]

    def test_unknown_tool_gets_generic_params(self):
        params = parse_tool_params("custom_tool", {"anything": 1})

        assert isinstance(params, GenericToolParams)
        assert params.tool == "custom_tool"
        assert params.anything == 1

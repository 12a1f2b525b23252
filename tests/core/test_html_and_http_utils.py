"""Tests for page text extraction and response size checks."""

import httpx
import pytest

from agentflow.core.backoff import backoff_delay
from agentflow.core.html_utils import extract_page_meta, html_to_text
from agentflow.core.http_utils import ResponseSizeError, validate_response_size

PAGE = """
<html><head>
<title>Jane Doe &amp; Co</title>
<meta name="description" content="Designer portfolio">
<meta name="keywords" content="design, ux , ">
<style>body { color: red; }</style>
</head><body>
<h1>About <em>me</em></h1>
<p>I design things.</p>
<script>var x = 1;</script>
<a href="/projects">Projects</a>
<a href="https://dribbble.com/jane">Dribbble</a>
<a href="mailto:jane@example.com">Mail</a>
</body></html>
"""


class TestHtmlUtils:
    def test_html_to_text_skips_scripts_and_styles(self):
        text = html_to_text(PAGE)

        assert "I design things." in text
        assert "var x" not in text
        assert "color: red" not in text

    def test_extract_page_meta(self):
        meta = extract_page_meta(PAGE, base_url="https://jane.dev/")

        assert meta["title"] == "Jane Doe & Co"
        assert meta["description"] == "Designer portfolio"
        assert meta["keywords"] == ["design", "ux"]
        assert meta["headings"] == ["About me"]
        assert meta["links"] == ["https://jane.dev/projects", "https://dribbble.com/jane"]


class TestResponseSize:
    def test_content_length_over_limit_raises(self):
        response = httpx.Response(200, headers={"content-length": "2048"}, content=b"x")

        with pytest.raises(ResponseSizeError) as exc_info:
            validate_response_size(response, 1024, "webpage")

        assert exc_info.value.actual_size == 2048
        assert exc_info.value.max_size == 1024

    def test_body_length_used_without_header(self):
        response = httpx.Response(200, content=b"x" * 10)
        response.headers.pop("content-length", None)

        validate_response_size(response, 10, "webpage")

    def test_non_positive_limit_is_rejected(self):
        with pytest.raises(ValueError):
            validate_response_size(httpx.Response(200), 0, "webpage")


class TestBackoff:
    def test_delay_doubles_and_is_capped(self):
        assert backoff_delay(0) == 1.0
        assert backoff_delay(1) == 2.0
        assert backoff_delay(2) == 4.0
        assert backoff_delay(3) == 5.0
        assert backoff_delay(10, backoff_base=0.5, max_delay=3.0) == 3.0

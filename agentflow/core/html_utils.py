from __future__ import annotations

import re
from html import unescape
from html.parser import HTMLParser
from urllib.parse import urljoin

_BLANK_LINE_RE = re.compile(r"\n{3,}")


def _collapse_blank_lines(text: str) -> str:
    """Replace runs of three or more newlines with exactly two."""
    return _BLANK_LINE_RE.sub("\n\n", text)


class _TextExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._buf: list[str] = []
        self._skip_depth = 0  # script/style/noscript

    def handle_starttag(self, tag: str, attrs):
        if tag in ("script", "style", "noscript"):
            self._skip_depth += 1
        elif self._skip_depth == 0:
            if tag == "br":
                self._buf.append("\n")
            elif tag in ("p", "div", "section", "article", "header", "footer"):
                self._buf.append("\n\n")
            elif tag == "li":
                self._buf.append("\n- ")
            elif tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
                self._buf.append("\n\n")

    def handle_endtag(self, tag: str) -> None:
        if tag in ("script", "style", "noscript") and self._skip_depth > 0:
            self._skip_depth -= 1
        elif self._skip_depth == 0 and tag in ("p", "div"):
            self._buf.append("\n")

    def handle_data(self, data: str) -> None:
        if self._skip_depth == 0:
            text = data.strip()
            if text:
                self._buf.append(text + " ")

    def get_text(self) -> str:
        text = unescape("".join(self._buf))
        text = re.sub(r"[ \t]+\n", "\n", text)
        return _collapse_blank_lines(text).strip()


class _PageMetaExtractor(HTMLParser):
    """Collects <title>, meta description/keywords, headings and anchors."""

    def __init__(self, base_url: str | None = None) -> None:
        super().__init__(convert_charrefs=True)
        self.base_url = base_url
        self.title = ""
        self.meta: dict[str, str] = {}
        self.headings: list[str] = []
        self.links: list[str] = []
        self._in_title = False
        self._heading_depth = 0
        self._heading_buf: list[str] = []

    def handle_starttag(self, tag: str, attrs):
        attributes = {key.lower(): (value or "") for key, value in attrs}
        if tag == "title":
            self._in_title = True
        elif tag == "meta":
            key = (attributes.get("name") or attributes.get("property") or "").lower()
            if key and attributes.get("content"):
                self.meta[key] = attributes["content"].strip()
        elif tag == "a" and attributes.get("href"):
            href = attributes["href"].strip()
            if self.base_url:
                href = urljoin(self.base_url, href)
            if href.startswith(("http://", "https://")) and href not in self.links:
                self.links.append(href)
        elif tag in ("h1", "h2", "h3"):
            self._heading_depth += 1
            self._heading_buf = []

    def handle_endtag(self, tag: str) -> None:
        if tag == "title":
            self._in_title = False
        elif tag in ("h1", "h2", "h3") and self._heading_depth > 0:
            self._heading_depth -= 1
            heading = " ".join(self._heading_buf).strip()
            if heading:
                self.headings.append(heading)

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self.title += data
        elif self._heading_depth > 0 and data.strip():
            self._heading_buf.append(data.strip())


def html_to_text(html: str) -> str:
    """Strip markup from an HTML document, keeping paragraph structure."""
    parser = _TextExtractor()
    parser.feed(html or "")
    parser.close()
    return parser.get_text()


def extract_page_meta(html: str, base_url: str | None = None) -> dict[str, object]:
    """Return title, description, keywords, headings and absolute links of a page."""
    parser = _PageMetaExtractor(base_url)
    parser.feed(html or "")
    parser.close()
    keywords = [k.strip() for k in parser.meta.get("keywords", "").split(",") if k.strip()]
    return {
        "title": unescape(parser.title).strip(),
        "description": parser.meta.get("description") or parser.meta.get("og:description", ""),
        "keywords": keywords,
        "headings": parser.headings,
        "links": parser.links,
    }

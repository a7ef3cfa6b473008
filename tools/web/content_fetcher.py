"""Fetch a page, extract its main body text and outline, and summarize it.

``fetch_and_summarize`` never raises: any network, timeout or parse
failure becomes a ``ScrapeDegraded`` outcome carrying a placeholder summary.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from config.config import ScrapeSettings
from utils.logger import get_logger

from .contracts import Heading, ScrapedContent, ScrapeDegraded, ScrapeOk, ScrapeOutcome

logger = get_logger(__name__)

Summarizer = Callable[[str, str], Awaitable[str]]

STRIP_SELECTORS = ["script", "style", "nav", "header", "footer", ".advertisement", ".ads"]

# Semantic containers first, then common class/id wrappers, body last.
CONTENT_SELECTORS = [
    "main",
    "article",
    ".content",
    ".post-content",
    ".entry-content",
    ".markdown-body",
    ".wiki-content",
    "#content",
    ".main-content",
    "body",
]

HEADING_TAGS = ["h1", "h2", "h3", "h4"]


def placeholder_summary(title: str) -> str:
    return f"Unable to scrape content from {title}. This resource may require manual review."


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def extract_main_text(soup: BeautifulSoup, min_chars: int) -> str:
    """Text of the first content container whose text exceeds ``min_chars``."""
    for selector in CONTENT_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        text = " ".join(el.get_text(" ", strip=True) for el in elements).strip()
        if len(text) > min_chars:
            return text

    body = soup.body or soup
    return body.get_text(" ", strip=True)


def extract_headings(soup: BeautifulSoup, max_headings: int, max_chars: int) -> list[Heading]:
    headings: list[Heading] = []
    for element in soup.find_all(HEADING_TAGS):
        text = normalize_whitespace(element.get_text(" ", strip=True))
        if text and len(text) < max_chars:
            headings.append(Heading(level=int(element.name[1]), text=text))
        if len(headings) >= max_headings:
            break
    return headings


class ContentFetcher:
    """
    Best-effort page scraper.

    Args:
        settings: timeouts, size caps and user agent
        summarize: async ``(content, title) -> summary`` primitive
        transport: optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        settings: ScrapeSettings,
        summarize: Summarizer,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._summarize = summarize
        self._transport = transport

    def _degraded(self, url: str, title: str, reason: str) -> ScrapeDegraded:
        return ScrapeDegraded(
            content=ScrapedContent(
                url=url,
                title=title,
                content="",
                summary=placeholder_summary(title),
                headers=[],
                word_count=0,
                error=reason,
            ),
            reason=reason,
        )

    async def _fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        async with httpx.AsyncClient(
            timeout=self.settings.timeout_s,
            follow_redirects=True,
            max_redirects=self.settings.max_redirects,
            headers=headers,
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.text

    def parse(self, url: str, title: str, html: str) -> tuple[str, list[Heading]]:
        """Return (normalized body text capped to the content limit, headings)."""
        soup = BeautifulSoup(html, "html.parser")
        for element in soup.select(", ".join(STRIP_SELECTORS)):
            # nested matches are already gone once their ancestor is decomposed
            if not element.decomposed:
                element.decompose()

        text = extract_main_text(soup, self.settings.min_container_chars)
        content = normalize_whitespace(text)[: self.settings.content_char_cap]
        headings = extract_headings(
            soup, self.settings.max_headings, self.settings.max_heading_chars
        )
        return content, headings

    async def _summarize_safely(self, content: str, title: str) -> str:
        try:
            return await self._summarize(content, title)
        except Exception as e:
            logger.warning(
                f"Summarization failed for {title}: {e}",
                extra={"extra_fields": {"title": title, "error_type": type(e).__name__}},
            )
            return f"{title}: Summary generation failed."

    async def fetch_and_summarize(self, url: str, title: str) -> ScrapeOutcome:
        """
        Scrape ``url`` and summarize its main content.

        Returns:
            ScrapeOk, or ScrapeDegraded with empty content and a placeholder summary
        """
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.warning(
                "Refusing to scrape malformed URL",
                extra={"extra_fields": {"url": url, "title": title}},
            )
            return self._degraded(url, title, f"Invalid URL: {url!r}")

        try:
            html = await asyncio.wait_for(self._fetch_html(url), timeout=self.settings.timeout_s)
            content, headings = self.parse(url, title, html)
        except asyncio.TimeoutError:
            reason = f"Timed out after {self.settings.timeout_s}s"
            logger.warning(
                f"Scraping timed out for {url}",
                extra={"extra_fields": {"url": url, "timeout_s": self.settings.timeout_s}},
            )
            return self._degraded(url, title, reason)
        except Exception as e:
            logger.warning(
                f"Scraping error for {url}: {e}",
                extra={"extra_fields": {"url": url, "error_type": type(e).__name__}},
            )
            return self._degraded(url, title, str(e) or type(e).__name__)

        summary = await self._summarize_safely(content, title)

        scraped = ScrapedContent(
            url=url,
            title=title,
            content=content[: self.settings.preview_chars],
            summary=summary,
            headers=headings,
            word_count=len(content.split()),
        )
        logger.info(
            "Scraped resource",
            extra={
                "extra_fields": {
                    "url": url,
                    "word_count": scraped.word_count,
                    "headings": len(headings),
                }
            },
        )
        return ScrapeOk(scraped)

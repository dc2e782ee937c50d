# src/scrapers/base_scraper.py

"""Abstract base class for all deal sources."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from bs4 import BeautifulSoup
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.record import Record


class SourceUnavailableError(Exception):
    """Raised when a source could not be reached at all this cycle."""


class BaseScraper(ABC):
    """Abstract base class for all deal sources.

    Subclasses are built from a registry entry in
    ``Settings.AVAILABLE_SOURCES`` and implement :meth:`scrape`.
    """

    def __init__(
        self,
        source: dict[str, Any],
        deadline: float | None = None,
    ) -> None:
        self.source = source
        # Absolute time.monotonic() value; None means unbounded
        self.deadline = deadline
        self.source_name: str = source["id"]
        self.logger = logging.getLogger(
            f"dealfeed.{self.source_name}"
        )
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._current_delay: float = (
            self.settings.REQUEST_DELAY
        )
        self._request_timeout: int = (
            self.settings.REQUEST_TIMEOUT
        )

    def _time_left(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def _out_of_time(self) -> bool:
        left = self._time_left()
        return left is not None and left <= 0

    def _bounded(self, seconds: float) -> float:
        """Clamp *seconds* to the time left before the deadline."""
        left = self._time_left()
        if left is None:
            return seconds
        return max(min(seconds, left), 0.0)

    def _sleep(self, seconds: float) -> None:
        time.sleep(self._bounded(seconds))

    def _wait(self) -> None:
        """Sleep using the current (possibly escalated) delay."""
        self._sleep(self._current_delay)

    # Cloudflare challenge page markers (checked before keyword scan)
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "just a moment",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    def _validate_response(
        self, resp: curl_requests.Response,
    ) -> bool:
        """Check for Cloudflare challenge pages and CAPTCHA indicators."""
        text = resp.text
        if text.lstrip().startswith(("{", "[")):
            return True
        lower = text.lower()

        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "[%s] Cloudflare challenge detected "
                    "(marker: '%s')",
                    self.source_name,
                    marker,
                )
                return False

        # Skip the keyword scan on full pages to avoid false
        # positives from footer text
        has_body_content = (
            "<body" in lower and len(text) > 5000
        )
        if not has_body_content:
            for keyword in self.settings.CAPTCHA_KEYWORDS:
                if keyword in lower:
                    self.logger.warning(
                        "[%s] CAPTCHA keyword '%s' "
                        "detected",
                        self.source_name,
                        keyword,
                    )
                    return False
        return True

    def _reset_delay(self) -> None:
        self._current_delay = self.settings.REQUEST_DELAY

    def _escalate_delay(self) -> None:
        """Double the current delay up to the configured max."""
        max_delay = (
            self.settings.REQUEST_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )
        self._current_delay = min(
            self._current_delay * 2, max_delay
        )
        self.logger.warning(
            "[%s] Rate-limited, delay escalated to %.1fs",
            self.source_name,
            self._current_delay,
        )

    def _fetch_get(
        self,
        url: str,
        headers: dict[str, str],
    ) -> curl_requests.Response | None:
        """GET with retries and adaptive delay."""
        for attempt in range(self.settings.MAX_RETRIES):
            if self._out_of_time():
                self.logger.warning(
                    "[%s] Deadline reached before attempt %d",
                    self.source_name,
                    attempt + 1,
                )
                return None
            try:
                resp = self.session.get(
                    url,
                    headers=headers,
                    timeout=self._bounded(self._request_timeout),
                )
                if resp.status_code == 200:
                    if not self._validate_response(resp):
                        self._escalate_delay()
                        self._sleep(self._current_delay)
                        continue
                    self._reset_delay()
                    return resp
                self.logger.warning(
                    "[%s] HTTP %d on attempt %d",
                    self.source_name,
                    resp.status_code,
                    attempt + 1,
                )
                if resp.status_code in (429, 403):
                    self._escalate_delay()
                    self._sleep(self._current_delay)
            except Exception as exc:
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    self.source_name,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                self._sleep(
                    self._current_delay * (attempt + 1)
                )
        return None

    def _get_page(self, url: str) -> BeautifulSoup | None:
        """Fetch a page, falling back to cloudscraper on failure."""
        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Referer": self._get_homepage(),
        }

        # Primary: curl_cffi (browser-impersonating TLS)
        resp = self._fetch_get(url, headers)
        if resp:
            return BeautifulSoup(resp.text, "lxml")

        if self._out_of_time():
            self.logger.warning(
                "[%s] Deadline reached, skipping cloudscraper fallback",
                self.source_name,
            )
            return None

        # Fallback: cloudscraper (JS challenge solver)
        self.logger.info(
            "[%s] curl_cffi exhausted, falling back to cloudscraper",
            self.source_name,
        )
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            fallback_resp: Any = scraper.get(
                url,
                headers=headers,
                timeout=self._bounded(self._request_timeout),
            )
            if fallback_resp.status_code == 200:
                return BeautifulSoup(
                    str(fallback_resp.text), "lxml"
                )
            self.logger.warning(
                "[%s] cloudscraper fallback returned HTTP %d",
                self.source_name,
                fallback_resp.status_code,
            )
        except Exception as e:
            self.logger.error(
                "[%s] cloudscraper fallback also failed: %s",
                self.source_name,
                e,
                exc_info=True,
            )

        return None

    def _get_homepage(self) -> str:
        """Return the homepage URL sent as Referer."""
        return str(self.source.get("base_url", ""))

    @abstractmethod
    def scrape(self) -> list[Record]:
        """Fetch and extract this source's current deals.

        Raises:
            SourceUnavailableError: If nothing could be fetched.
        """
        ...

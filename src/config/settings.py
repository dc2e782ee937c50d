# src/config/settings.py

"""Central configuration for the dealfeed aggregator."""

import os
from pathlib import Path
from typing import Any

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the dealfeed aggregator."""

    # --- Scraping ---
    REQUEST_DELAY: float = 1.0          # Seconds between page requests
    REQUEST_TIMEOUT: int = 4            # Seconds before a request times out
    SOURCE_TIMEOUT: float = 20.0        # Deadline for one source per refresh
    SOURCE_DEADLINE_MARGIN: float = 1.0 # Scraper deadline lead over SOURCE_TIMEOUT
    MAX_RETRIES: int = 2                # Attempts per page
    MAX_PAGES: int = 2                  # Search pages fetched per source
    MAX_DELAY_MULTIPLIER: int = 4       # Cap for adaptive backoff
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
        "não sou um robô",
    ]

    # --- Aggregation ---
    PER_SOURCE_LIMIT: int = 15          # Records kept per source
    MIN_LIVE_RECORDS: int = 8           # Below this, supplement with fallback
    MAX_FEED_RECORDS: int = 50          # Global cap after supplementation
    TITLE_MAX_LENGTH: int = 100
    TITLE_MIN_LENGTH: int = 6
    PRICE_INQUIRE: str = "Consulte o preço"
    PLACEHOLDER_IMAGE: str = (
        "https://via.placeholder.com/200x200?text={label}"
    )
    DISPLAY_TIMEZONE: str = "America/Sao_Paulo"

    # --- Cache ---
    FEED_CACHE_TTL: float = 1800.0      # 30 minutes
    STALE_CEILING_MULTIPLIER: int = 4   # Block on refresh past ttl * this
    REFRESH_INTERVAL: float = 3600.0    # Forced background refresh

    # --- Affiliate ---
    AFFILIATE_SOURCE: str = "shopee"
    AFFILIATE_PARAM: str = "affiliate_id"
    AFFILIATE_ID: str = os.getenv("AFFILIATE_ID", "18369330491")

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Server ---
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    SNAPSHOT_PATH: Path = BASE_DIR / "products.json"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Remote snapshot (empty disables the snapshot source) ---
    SNAPSHOT_URL: str = os.getenv("SNAPSHOT_URL", "")
    SNAPSHOT_SOURCE: dict[str, Any] = {
        "id": "snapshot",
        "label": "Snapshot",
        "base_url": "https://shopee.com.br",
        "search_url": "",
        "first_page": 0,
        "currency": "R$",
        "scraper": "src.scrapers.snapshot_scraper.SnapshotScraper",
    }

    # --- Sources ---
    AVAILABLE_SOURCES: list[dict[str, Any]] = [
        {
            "id": "shopee",
            "label": "Shopee",
            "base_url": "https://shopee.com.br",
            "search_url": (
                "https://shopee.com.br/search?keyword=oferta&page={page}"
            ),
            "first_page": 0,
            "currency": "R$",
            "scraper": (
                "src.scrapers.marketplace_scraper.MarketplaceScraper"
            ),
        },
        {
            "id": "mercadolivre",
            "label": "Mercado Livre",
            "base_url": "https://www.mercadolivre.com.br",
            "search_url": (
                "https://www.mercadolivre.com.br/ofertas?page={page}"
            ),
            "first_page": 1,
            "currency": "R$",
            "scraper": (
                "src.scrapers.marketplace_scraper.MarketplaceScraper"
            ),
        },
        {
            "id": "amazon",
            "label": "Amazon",
            "base_url": "https://www.amazon.com.br",
            "search_url": (
                "https://www.amazon.com.br/s?k=ofertas&page={page}"
            ),
            "first_page": 1,
            "currency": "R$",
            "scraper": (
                "src.scrapers.marketplace_scraper.MarketplaceScraper"
            ),
        },
        {
            "id": "magalu",
            "label": "Magalu",
            "base_url": "https://www.magazineluiza.com.br",
            "search_url": (
                "https://www.magazineluiza.com.br/busca/ofertas/?page={page}"
            ),
            "first_page": 1,
            "currency": "R$",
            "scraper": (
                "src.scrapers.marketplace_scraper.MarketplaceScraper"
            ),
        },
    ]

    @classmethod
    def get_source(cls, source_id: str) -> dict[str, Any] | None:
        """Return the registry entry for *source_id*, if any."""
        if source_id == cls.SNAPSHOT_SOURCE["id"]:
            return cls.SNAPSHOT_SOURCE
        for src in cls.AVAILABLE_SOURCES:
            if src["id"] == source_id:
                return src
        return None

    @classmethod
    def active_sources(cls) -> list[dict[str, Any]]:
        """Sources dispatched on every refresh."""
        sources = list(cls.AVAILABLE_SOURCES)
        if cls.SNAPSHOT_URL:
            sources.append(cls.SNAPSHOT_SOURCE)
        return sources

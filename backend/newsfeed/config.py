"""
Pipeline configuration with environment variable support.
"""
from __future__ import annotations

import os
from typing import Dict, List, Tuple


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable with fallback."""
    try:
        return float(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable with fallback."""
    try:
        return int(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_list(key: str, default: list[str], separator: str = ",") -> list[str]:
    """Get list value from environment variable with fallback."""
    value = os.getenv(key)
    if not value:
        return default
    return [item.strip() for item in value.split(separator) if item.strip()]


# Storage
DATA_DIR: str = os.getenv("DATA_DIR", "data")
HEADLINES_FILENAME = "headlines.json"
METADATA_FILENAME = "metadata.json"

# Retention and merge settings
RETENTION_HOURS: float = _get_env_float("RETENTION_HOURS", 24.0)
RETENTION_WINDOW_MS: int = int(RETENTION_HOURS * 60 * 60 * 1000)
MAX_STORE_SIZE: int = _get_env_int("MAX_STORE_SIZE", 200)
SIMILARITY_THRESHOLD: float = _get_env_float("SIMILARITY_THRESHOLD", 0.9)
MAX_RECENT_ERRORS: int = _get_env_int("MAX_RECENT_ERRORS", 10)

# Source refresh intervals (minutes). Fixed per source type, order is the
# order in which source types are scheduled.
REFRESH_INTERVALS: Dict[str, int] = {
    "rss": 15,
    "finnhub": 30,
    "newsapi": 20,
    "marketaux": 25,
    "social": 20,
}
FALLBACK_REFRESH_INTERVAL: int = 60
SOURCE_TYPES: List[str] = list(REFRESH_INTERVALS)

# Timeouts (milliseconds). Feeds get a shorter deadline than keyed APIs.
SOURCE_TIMEOUT_MS: int = _get_env_int("SOURCE_TIMEOUT_MS", 10000)
FEED_TIMEOUT_MS: int = _get_env_int("FEED_TIMEOUT_MS", 4000)
API_TIMEOUT_MS: int = _get_env_int("API_TIMEOUT_MS", 5000)
ALPHAVANTAGE_TIMEOUT_MS: int = _get_env_int("ALPHAVANTAGE_TIMEOUT_MS", 6000)
SOCIAL_TIMEOUT_MS: int = _get_env_int("SOCIAL_TIMEOUT_MS", 5000)

# Items kept per underlying source on each fetch
ITEMS_PER_FEED: int = 2
FINNHUB_MAX_ITEMS: int = 3
NEWSDATA_MAX_ITEMS: int = 3
ALPHAVANTAGE_MAX_ITEMS: int = 4
MARKETAUX_MAX_ITEMS: int = 5
REDDIT_ITEMS_PER_SUBREDDIT: int = 3

# Pagination
DEFAULT_PAGE_SIZE: int = _get_env_int("DEFAULT_PAGE_SIZE", 10)
MAX_PAGE_SIZE: int = 100

# RSS feeds: (display name, url, category hint)
# The hint is only used when the headline itself matches no keyword rule.
FEED_SOURCES: List[Tuple[str, str, str]] = [
    # Top tier financial news
    ("Reuters Business", "https://feeds.reuters.com/reuters/businessNews", "markets"),
    ("MarketWatch Breaking", "https://feeds.content.dowjones.io/public/rss/mw_topstories", "markets"),
    ("Financial Times", "https://www.ft.com/rss/home", "general"),
    ("WSJ Markets", "https://feeds.a.dj.com/rss/RSSMarketsMain.xml", "markets"),

    # CNBC
    ("CNBC BREAKING", "https://www.cnbc.com/id/100727362/device/rss/rss.html", "general"),
    ("CNBC MARKETS", "https://www.cnbc.com/id/10000664/device/rss/rss.html", "markets"),
    ("CNBC TECH", "https://www.cnbc.com/id/19854910/device/rss/rss.html", "tech"),
    ("CNBC EARNINGS", "https://www.cnbc.com/id/15839135/device/rss/rss.html", "earnings"),
    ("CNBC ECONOMY", "https://www.cnbc.com/id/20910258/device/rss/rss.html", "politics"),

    # Specialized financial
    ("BLOOMBERG MARKETS", "https://feeds.bloomberg.com/markets/news.rss", "markets"),
    ("YAHOO FINANCE", "https://feeds.finance.yahoo.com/rss/2.0/headline", "markets"),
    ("SEEKING ALPHA", "https://seekingalpha.com/feed.xml", "markets"),

    # Crypto
    ("COINDESK PRO", "https://feeds.feedburner.com/CoinDesk", "crypto"),
    ("COINTELEGRAPH", "https://cointelegraph.com/rss", "crypto"),

    # Economic data
    ("FED NEWS", "https://www.federalreserve.gov/feeds/press_all.xml", "politics"),
    ("TREASURY NEWS", "https://home.treasury.gov/rss/press-releases", "politics"),
]

# Social sources
SOCIAL_SUBREDDITS: List[str] = _get_env_list(
    "SOCIAL_SUBREDDITS", ["stocks", "investing", "wallstreetbets"]
)

# Keyed API query settings
MARKETAUX_SYMBOLS = "SPY,QQQ,IWM,TSLA,AAPL,MSFT,NVDA,GOOGL,AMZN,META"
ALPHAVANTAGE_TOPICS = "technology,financial_markets,economy_fiscal,ipo,mergers_and_acquisitions"
NEWSDATA_QUERY = "stocks OR market OR finance OR economy OR earnings"

# HTTP Client Configuration
USER_AGENT = "Mozilla/5.0 (compatible; HeadlineFeed/0.1)"
HTTP_HEADERS = {"User-Agent": USER_AGENT}

# CORS Configuration
CORS_ALLOW_ORIGINS: list[str] = _get_env_list("CORS_ALLOW_ORIGINS", ["*"])

# Logging Configuration
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

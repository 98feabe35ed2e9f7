"""
Keyword-based headline categorization.

Headlines often match keywords from several categories, so the rules are
evaluated in a fixed order and the first match wins:
crypto, earnings, personal-finance, tech, politics, markets, general.
"""
from __future__ import annotations

from typing import Callable, List, Tuple

from newsfeed.schemas import Category

CRYPTO_KEYWORDS = (
    "crypto", "bitcoin", "ethereum", "btc", "blockchain", "digital currency",
    "cryptocurrency", "defi",
)

EARNINGS_KEYWORDS = (
    "earnings", "revenue", "quarterly report", "quarterly", "q1", "q2", "q3", "q4",
    "eps", "beat estimates", "misses estimates", "guidance", "profit",
)

PERSONAL_FINANCE_KEYWORDS = (
    "retirement", "my portfolio", "should i invest", "my money", "my savings", "debt",
    "financial advice", "invest my", "fire my", "adviser", "advisor", "personal finance",
    "student loan", "mortgage", "401k",
)

# Trailing spaces are intentional: "ai " should not match "said", "ev " not "every".
TECH_KEYWORDS = (
    "ai ", "artificial intelligence", "machine learning", "tesla", "apple", "microsoft",
    "google", "meta", "nvidia", "amazon", "technology", "software", "semiconductor",
    "chip", "tech stock", "ev ", "electric vehicle",
)

POLITICS_KEYWORDS = (
    "trump", "biden", "congress", "senate", "government", "policy", "tariff", "trade war",
    "election", "political", "legislation", "republican", "democrat", "white house",
    "federal", "regulation", "sanctions",
)

MONETARY_POLICY_KEYWORDS = (
    "fed ", "federal reserve", "interest rate", "monetary policy", "inflation",
    "rate cut", "rate hike", "powell", "central bank",
)

MARKETS_KEYWORDS = (
    "stock market", "market", "s&p 500", "s&p", "dow", "nasdaq", "trading", "bull market",
    "bear market", "stocks", "index", "etf", "futures", "options", "volatility", "rally",
    "selloff", "correction",
)


def _contains_any(text: str, keywords: tuple) -> bool:
    return any(keyword in text for keyword in keywords)


def _is_personal_finance(text: str) -> bool:
    if _contains_any(text, PERSONAL_FINANCE_KEYWORDS):
        return True
    # First-person money questions, e.g. "I'm 30 and want to invest"
    return "i'm" in text and ("invest" in text or "money" in text)


CATEGORY_RULES: List[Tuple[Category, Callable[[str], bool]]] = [
    ("crypto", lambda text: _contains_any(text, CRYPTO_KEYWORDS)),
    ("earnings", lambda text: _contains_any(text, EARNINGS_KEYWORDS)),
    ("personal-finance", _is_personal_finance),
    ("tech", lambda text: _contains_any(text, TECH_KEYWORDS)),
    ("politics", lambda text: _contains_any(text, POLITICS_KEYWORDS)),
    ("politics", lambda text: _contains_any(text, MONETARY_POLICY_KEYWORDS)),
    ("markets", lambda text: _contains_any(text, MARKETS_KEYWORDS)),
]


def classify(headline: str | None) -> Category:
    """
    Map a headline to its content category.

    Args:
        headline: Raw headline text (None is treated as empty)

    Returns:
        The first matching category, or "general" when no rule matches
    """
    text = (headline or "").lower()
    for category, matches in CATEGORY_RULES:
        if matches(text):
            return category
    return "general"

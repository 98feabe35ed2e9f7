# newsfeed/schemas.py
from typing import Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

Category = Literal["markets", "crypto", "politics", "tech", "personal-finance", "earnings", "general"]
Kind = Literal["news", "social"]

CATEGORIES: tuple = get_args(Category)


class Record(BaseModel):
    """One normalized headline. Serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    headline: str
    source: str                                   # display name, e.g. "CNBC MARKETS" or "r/stocks"
    timestamp: int                                # epoch ms
    url: Optional[str] = None
    summary: Optional[str] = None
    sentiment_score: Optional[float] = Field(default=None, alias="sentimentScore")
    tickers: Optional[List[str]] = None
    kind: Kind = "news"
    origin_adapter: str = Field(alias="originAdapter")
    category: Category = "general"

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PageObject(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[Record]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")
    has_next_page: bool = Field(alias="hasNextPage")
    has_prev_page: bool = Field(alias="hasPrevPage")

    def to_json(self) -> dict:
        data = self.model_dump(by_alias=True, exclude={"items"})
        data["items"] = [item.to_json() for item in self.items]
        return data


class SourceStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_refresh: Dict[str, int] = Field(alias="lastRefresh")
    refresh_intervals: Dict[str, int] = Field(alias="refreshIntervals")
    errors: Dict[str, List[str]]
    total_fetches: int = Field(alias="totalFetches")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)

"""Models for Finnhub provider responses."""
from typing import Any

from pydantic import BaseModel, Field


class FinnhubQuote(BaseModel):
    """Response of /quote. Only the fields used for enrichment."""

    current_price: float | None = Field(default=None, alias="c")
    change_percent: float | None = Field(default=None, alias="dp")

    model_config = {"populate_by_name": True}


class FinnhubProfile(BaseModel):
    """Response of /stock/profile2. Market cap is reported in millions of USD."""

    ticker: str | None = None
    name: str | None = None
    exchange: str | None = None
    market_capitalization: float | None = Field(
        default=None, alias="marketCapitalization"
    )

    model_config = {"populate_by_name": True}


class FinnhubMetrics(BaseModel):
    """Response of /stock/metric?metric=all; ``metric`` holds mixed-type fundamentals."""

    metric: dict[str, Any] = Field(default_factory=dict)


class FinnhubSearchHit(BaseModel):
    symbol: str = ""
    description: str = ""
    display_symbol: str | None = Field(default=None, alias="displaySymbol")
    type: str | None = None

    model_config = {"populate_by_name": True}


class FinnhubSearchResponse(BaseModel):
    """Response of /search."""

    count: int = 0
    result: list[FinnhubSearchHit] = Field(default_factory=list)

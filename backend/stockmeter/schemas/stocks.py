"""Stock Schemas — request bodies for the stock endpoints.

Invariants:
    - CompareRequest.tickers: 1..50 entries, each non-blank after stripping
"""

from pydantic import BaseModel, Field, field_validator


class CompareRequest(BaseModel):
    tickers: list[str] = Field(min_length=1, max_length=50)

    @field_validator("tickers")
    @classmethod
    def strip_tickers(cls, v: list[str]) -> list[str]:
        stripped = [t.strip() for t in v]
        if any(not t for t in stripped):
            raise ValueError("tickers cannot contain empty values")
        return stripped

"""Currency Schemas — conversion request with ISO 4217 code validation.

Invariants:
    - amount > 0
    - from/to are 3-letter codes, upper-cased
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(gt=0)
    from_currency: str = Field(alias="from", min_length=3, max_length=3)
    to_currency: str = Field(alias="to", min_length=3, max_length=3)

    @field_validator("from_currency", "to_currency")
    @classmethod
    def upper_code(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError("currency code must be alphabetic")
        return v.upper()

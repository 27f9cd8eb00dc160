"""Domain Types — market data and valuation result types shared by every layer.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - Every type round-trips through to_dict()/from_dict() (cache stores plain JSON)
    - Money amounts are floats in the quote currency; ratios are plain floats
    - Nullable numbers mean "not computable", never zero

Design Decisions:
    - Dataclasses over Pydantic in core: no validation cost on hot paths, no IO
    - str Enums: serialize to JSON without custom encoders
    - to_dict() emits snake_case keys, the same shape the API returns
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Period(str, Enum):
    """Financial statement reporting period."""
    ANNUAL = "annual"
    QUARTERLY = "quarterly"


class ValuationStatus(str, Enum):
    """Aggregate verdict comparing price to the average fair value."""
    UNDERVALUED = "undervalued"
    FAIRLY_PRICED = "fairly_priced"
    OVERVALUED = "overvalued"


STATUS_COLOR_CODES: dict[ValuationStatus, str] = {
    ValuationStatus.UNDERVALUED: "soft-green",
    ValuationStatus.FAIRLY_PRICED: "white",
    ValuationStatus.OVERVALUED: "soft-red",
}


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# ─── Market Data ─────────────────────────────────────────────────

@dataclass
class StockSearchResult:
    ticker: str
    name: str
    exchange: str
    type: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StockSearchResult":
        return cls(**data)


@dataclass
class StockProfile:
    ticker: str
    name: str
    exchange: str
    sector: str
    industry: str
    description: str
    market_cap: float
    shares_outstanding: float

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StockProfile":
        return cls(**data)


@dataclass
class StockPrice:
    ticker: str
    price: float
    currency: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "price": self.price,
            "currency": self.currency,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StockPrice":
        return cls(
            ticker=data["ticker"],
            price=data["price"],
            currency=data["currency"],
            timestamp=_parse_timestamp(data["timestamp"]),
        )


@dataclass
class FinancialStatement:
    """One reporting period. `date` is an ISO date string (YYYY-MM-DD)."""
    date: str
    revenue: float = 0.0
    net_income: float = 0.0
    ebitda: float = 0.0
    eps: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    book_value: float = 0.0
    free_cash_flow: float = 0.0
    capex: float = 0.0
    working_capital: float = 0.0
    dividend_per_share: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "FinancialStatement":
        return cls(**data)


@dataclass
class FinancialStatements:
    ticker: str
    period: Period
    statements: list[FinancialStatement] = field(default_factory=list)

    def chronological(self) -> list[FinancialStatement]:
        """Statements ordered oldest → newest (valuation models read it this way)."""
        return sorted(self.statements, key=lambda s: s.date)

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "period": self.period.value,
            "statements": [s.to_dict() for s in self.statements],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FinancialStatements":
        return cls(
            ticker=data["ticker"],
            period=Period(data["period"]),
            statements=[FinancialStatement.from_dict(s) for s in data["statements"]],
        )


@dataclass
class IndustryPeer:
    ticker: str
    name: str
    sector: str
    industry: str
    market_cap: float
    pe_ratio: float | None = None
    pb_ratio: float | None = None
    ps_ratio: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "IndustryPeer":
        return cls(**data)


# ─── Valuation Results ───────────────────────────────────────────

@dataclass
class DCFAssumptions:
    revenue_growth_rate: float
    wacc: float
    terminal_growth_rate: float
    projection_years: int
    fcf_margin: float


@dataclass
class DCFResult:
    fair_value: float
    assumptions: DCFAssumptions
    projected_cash_flows: list[float]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DCFResult":
        return cls(
            fair_value=data["fair_value"],
            assumptions=DCFAssumptions(**data["assumptions"]),
            projected_cash_flows=list(data["projected_cash_flows"]),
        )


@dataclass
class DDMAssumptions:
    dividend_growth_rate: float
    discount_rate: float


@dataclass
class DDMResult:
    fair_value: float | None
    assumptions: DDMAssumptions
    applicable: bool

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DDMResult":
        return cls(
            fair_value=data["fair_value"],
            assumptions=DDMAssumptions(**data["assumptions"]),
            applicable=data["applicable"],
        )


@dataclass
class RatioSet:
    pe: float | None = None
    pb: float | None = None
    ps: float | None = None


@dataclass
class RelativeValueResult:
    pe_ratio_fair_value: float | None
    pb_ratio_fair_value: float | None
    ps_ratio_fair_value: float | None
    company_metrics: RatioSet
    industry_medians: RatioSet

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RelativeValueResult":
        return cls(
            pe_ratio_fair_value=data["pe_ratio_fair_value"],
            pb_ratio_fair_value=data["pb_ratio_fair_value"],
            ps_ratio_fair_value=data["ps_ratio_fair_value"],
            company_metrics=RatioSet(**data["company_metrics"]),
            industry_medians=RatioSet(**data["industry_medians"]),
        )


@dataclass
class GrahamAssumptions:
    eps: float
    book_value_per_share: float


@dataclass
class GrahamResult:
    fair_value: float | None
    assumptions: GrahamAssumptions
    applicable: bool

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GrahamResult":
        return cls(
            fair_value=data["fair_value"],
            assumptions=GrahamAssumptions(**data["assumptions"]),
            applicable=data["applicable"],
        )


@dataclass
class FairValueResult:
    ticker: str
    current_price: float
    dcf: DCFResult | None
    ddm: DDMResult | None
    relative_value: RelativeValueResult | None
    graham: GrahamResult | None
    valuation_status: ValuationStatus
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def fair_values(self) -> dict[str, float | None]:
        """Per-model fair values keyed by model name (None when not computed)."""
        rel = self.relative_value
        return {
            "dcf": self.dcf.fair_value if self.dcf else None,
            "ddm": self.ddm.fair_value if self.ddm else None,
            "pe_ratio": rel.pe_ratio_fair_value if rel else None,
            "pb_ratio": rel.pb_ratio_fair_value if rel else None,
            "ps_ratio": rel.ps_ratio_fair_value if rel else None,
            "graham": self.graham.fair_value if self.graham else None,
        }

    def to_dict(self) -> dict:
        return {
            "ticker": self.ticker,
            "current_price": self.current_price,
            "dcf": self.dcf.to_dict() if self.dcf else None,
            "ddm": self.ddm.to_dict() if self.ddm else None,
            "relative_value": (
                self.relative_value.to_dict() if self.relative_value else None
            ),
            "graham": self.graham.to_dict() if self.graham else None,
            "valuation_status": self.valuation_status.value,
            "calculated_at": self.calculated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FairValueResult":
        return cls(
            ticker=data["ticker"],
            current_price=data["current_price"],
            dcf=DCFResult.from_dict(data["dcf"]) if data.get("dcf") else None,
            ddm=DDMResult.from_dict(data["ddm"]) if data.get("ddm") else None,
            relative_value=(
                RelativeValueResult.from_dict(data["relative_value"])
                if data.get("relative_value") else None
            ),
            graham=(
                GrahamResult.from_dict(data["graham"]) if data.get("graham") else None
            ),
            valuation_status=ValuationStatus(data["valuation_status"]),
            calculated_at=_parse_timestamp(data["calculated_at"]),
        )

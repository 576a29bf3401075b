"""
Pydantic models for bank statement tokens, column layouts and transactions.
"""
from decimal import Decimal
from typing import List, Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Token(BaseModel):
    """A text fragment with page-relative bounding-box geometry."""
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    page: int = 1

    @property
    def right(self) -> float:
        return self.x + self.width


class ColumnBand(BaseModel):
    """Half-open x-range ``[start, end)`` owned by one field."""
    model_config = ConfigDict(frozen=True)

    start: float
    end: float

    def contains(self, x: float) -> bool:
        return self.start <= x < self.end

    def overlaps(self, other: "ColumnBand") -> bool:
        return self.start < other.end and other.start < self.end

    @property
    def empty(self) -> bool:
        return self.end <= self.start


class ColumnLayout(BaseModel):
    """Field name to band mapping produced by header calibration."""
    model_config = ConfigDict(frozen=True)

    bands: Dict[str, ColumnBand]

    @model_validator(mode='after')
    def check_disjoint(self):
        """Bands of one layout never overlap."""
        items = [(name, band) for name, band in self.bands.items() if not band.empty]
        for i, (name, band) in enumerate(items):
            for other_name, other in items[i + 1:]:
                if band.overlaps(other):
                    raise ValueError(
                        f"Column bands overlap: {name} {band.start}-{band.end} "
                        f"and {other_name} {other.start}-{other.end}"
                    )
        return self

    def field_for(self, x: float) -> Optional[str]:
        """Return the field whose band contains ``x``, or None."""
        for name, band in self.bands.items():
            if band.contains(x):
                return name
        return None


class PageWindow(BaseModel):
    """Regexes that bound the pages handed to the row clusterer."""
    start_regex: Optional[str] = None
    stop_regex: Optional[str] = None


class PatternConfig(BaseModel):
    """Per-bank configuration loaded from a YAML template."""
    pattern_id: str
    name: str
    bank: str = ""
    layout: str
    header_keywords: List[str]
    margin_to_ignore: float = 0
    row_tolerance: float = 4
    page_offset: float = 1000
    date_regex: str = r'^\d{2}\.\d{2}$'
    thousands_separator: str = ','
    decimal_separator: str = '.'
    end_of_block_markers: List[str] = Field(default_factory=list)
    pages: PageWindow = Field(default_factory=PageWindow)
    default_columns: Dict[str, Tuple[float, float]] = Field(default_factory=dict)
    column_labels: Dict[str, str] = Field(default_factory=dict)
    calibration: Dict[str, float] = Field(default_factory=dict)
    require_single_amount: bool = False

    @field_validator('header_keywords')
    def lowercase_keywords(cls, v):
        """Header rows are matched lowercased, so keywords are too."""
        if not v:
            raise ValueError("A pattern needs at least one header keyword")
        return [keyword.lower() for keyword in v]

    def default_band(self, field: str) -> ColumnBand:
        start, end = self.default_columns.get(field, (0, 0))
        return ColumnBand(start=start, end=end)


class Transaction(BaseModel):
    """Individual statement row that passed validation."""
    date: str
    description: str
    debit: str = ""
    credit: str = ""
    value: str = ""
    balance: str

    def signed_amount(self, thousands_separator: str = ',',
                      decimal_separator: str = '.') -> Optional[Decimal]:
        """Movement as one signed number: credits positive, debits negative."""
        def clean(raw: str) -> str:
            cleaned = ''.join(raw.replace(thousands_separator, '').split())
            return cleaned.replace(decimal_separator, '.')

        if self.value:
            return Decimal(clean(self.value))
        if self.credit:
            return Decimal(clean(self.credit))
        if self.debit:
            return -Decimal(clean(self.debit))
        return None


class StatementData(BaseModel):
    """Result of one successful parse."""
    pattern_id: str
    bank: str = ""
    transactions: List[Transaction]

    @field_validator('transactions')
    def validate_not_empty(cls, v):
        """A parse never succeeds with zero transactions."""
        if not v:
            raise ValueError("Statement data must contain at least one transaction")
        return v

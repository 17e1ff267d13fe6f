"""Data models for wine pricing and enrichment."""

from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from cellar import config

WineColor = Literal["red", "white", "rosé", "sparkling", "champagne", "dessert"]


class BottleSize(BaseModel):
    """A physical bottle format and its volume relative to a 750ml bottle."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog key, e.g. 'magnum'")
    display_name: str = Field(..., description="Human readable name")
    volume_label: str = Field(..., description="Display volume, e.g. '1.5L'")
    volume_ml: float = Field(..., gt=0, description="Volume in milliliters")
    standard_bottle_equivalent: float = Field(..., gt=0, description="Number of 750ml bottles")
    description: str = Field("", description="Short description of the format")


class PriceQuery(BaseModel):
    """Wine identity to price."""

    model_config = ConfigDict(frozen=True)

    producer: str = Field(..., min_length=1, description="Producer / château name")
    vintage: int | None = Field(None, description="Vintage year")
    region: str | None = Field(None, description="Wine region")
    bottle_size: str = Field("standard", description="Bottle size id")

    @field_validator("producer")
    @classmethod
    def _strip_producer(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("producer must not be blank")
        return v

    @field_validator("bottle_size", mode="before")
    @classmethod
    def _default_bottle_size(cls, v: Any) -> Any:
        return v or "standard"


class PriceSource(str, Enum):
    """Where a price came from."""

    SCRAPED_MARKETPLACE = "scraped-marketplace"
    GENERATIVE_ESTIMATE = "generative-estimate"


class PriceResult(BaseModel):
    """Resolved price range for a wine.

    Either every price field is null and ``source`` is null, or ``price_avg``
    and ``source`` are both set. Present bounds always bracket the average.
    """

    model_config = ConfigDict(frozen=True)

    price_min: float | None = Field(None, gt=0)
    price_max: float | None = Field(None, gt=0)
    price_avg: float | None = Field(None, gt=0)
    source: PriceSource | None = None
    currency: str = config.DEFAULT_CURRENCY
    confidence: Literal["high", "medium"] | None = Field(
        None, description="Self-reported confidence of a generative estimate"
    )
    quota_exceeded: bool = Field(
        False, description="Generative API quota was hit; retry later"
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "PriceResult":
        if self.price_avg is None:
            if self.price_min is not None or self.price_max is not None or self.source is not None:
                raise ValueError("price bounds or source set without an average")
            return self
        if self.source is None:
            raise ValueError("price_avg requires a source")
        if self.price_min is not None and self.price_min > self.price_avg:
            raise ValueError("price_min exceeds price_avg")
        if self.price_max is not None and self.price_max < self.price_avg:
            raise ValueError("price_max is below price_avg")
        return self

    @classmethod
    def empty(cls, quota_exceeded: bool = False) -> "PriceResult":
        """The canonical "no price found" result."""
        return cls(quota_exceeded=quota_exceeded)

    @property
    def found(self) -> bool:
        return self.price_avg is not None

    def __str__(self) -> str:
        if not self.found:
            return "price unknown"
        if self.price_min is not None and self.price_max is not None:
            return (
                f"{self.price_avg:.2f} {self.currency} "
                f"({self.price_min:.2f}-{self.price_max:.2f}, {self.source.value})"
            )
        return f"{self.price_avg:.2f} {self.currency} ({self.source.value})"


class PriceEstimate(BaseModel):
    """JSON answer expected from the model for a price estimate."""

    model_config = ConfigDict(strict=True, extra="ignore")

    price_min: float | None = None
    price_max: float | None = None
    price_avg: float | None = None
    confidence: Literal["high", "medium", "low"]
    reasoning: str | None = None


class WineDescription(BaseModel):
    """JSON answer expected from the model for descriptive enrichment."""

    model_config = ConfigDict(strict=True, extra="ignore")

    region: str | None = None
    country: str | None = None
    appellation: str | None = None
    grape_variety: str | None = None
    tasting_notes: str | None = None
    food_pairing: list[str] | None = None
    drinking_window: str | None = None
    winemaker_info: str | None = None


class WineRecord(BaseModel):
    """A stored wine row, as handed over by the persistence layer."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    # stored rows call the producer "chateau"
    producer: str = Field(..., min_length=1, validation_alias=AliasChoices("producer", "chateau"))
    wine_name: str | None = None
    vintage: int | None = None
    color: str | None = None
    bottle_size: str | None = None

    region: str | None = None
    country: str | None = None
    appellation: str | None = None
    grape_variety: str | None = None
    tasting_notes: str | None = None
    food_pairing: list[str] | None = None
    drinking_window: str | None = None
    winemaker_info: str | None = None

    price_min: float | None = None
    price_max: float | None = None
    price_avg: float | None = None
    price_source: str | None = None
    currency: str | None = None


class EnrichmentResult(BaseModel):
    """Partial update set produced by enrichment.

    Only ever holds fields that were empty on the record.
    """

    updates: dict[str, Any] = Field(default_factory=dict)
    quota_exceeded: bool = False

    @property
    def enriched_fields(self) -> list[str]:
        return list(self.updates)

    @property
    def is_empty(self) -> bool:
        return not self.updates


class QuickLabelExtraction(BaseModel):
    """Fields read directly off a label; the rest is left for enrichment."""

    model_config = ConfigDict(extra="ignore")

    chateau: str | None = None
    wine_name: str | None = None
    vintage: int | None = None
    color: WineColor | None = None
    region: str | None = None
    country: str | None = None
    grape_variety: str | None = None
    appellation: str | None = None

    @field_validator("color", mode="before")
    @classmethod
    def _normalize_color(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        v = v.strip().lower()
        return "rosé" if v == "rose" else (v or None)


class LabelExtraction(QuickLabelExtraction):
    """Full label extraction including model knowledge about the wine."""

    alcohol_pct: float | None = None
    winemaker_info: str | None = None
    food_pairing: list[str] | None = None
    tasting_notes: str | None = None
    drinking_window: str | None = None
    confidence: dict[str, float] | None = None


class ScanResult(BaseModel):
    """Label extraction plus the resolved price, if a producer was read."""

    wine: LabelExtraction | QuickLabelExtraction
    price: PriceResult | None = None
    bottle_size: str = "standard"


class DrinkingStatusInfo(BaseModel):
    """Where a wine sits relative to its drinking window."""

    status: Literal["drink-now", "drink-soon", "too-young", "past-peak", "unknown"]
    label: str
    description: str
    urgency: int = Field(0, ge=0, le=3, description="Higher means drink sooner")

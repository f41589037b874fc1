"""
Core domain models for product taxonomy matching.

All business data structures use Pydantic for validation and serialization.
Exposure percentages are Optional throughout: None means "not reported",
which is different from a reported 0.
"""
import math
import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EXPOSURE_FIELDS = (
    "exposure_stocks",
    "exposure_bonds",
    "exposure_foreign_currency",
    "exposure_foreign_investments",
    "exposure_israel",
    "exposure_illiquid_assets",
)

_NUMERIC_NOISE = re.compile(r"[₪,%\s]")
_DIRECTION_MARKS = re.compile("[\u200e\u200f]")
_WHITESPACE = re.compile(r"\s+")


def parse_number(value: Any) -> float:
    """
    Parse an amount or fee cell into a float.

    Currency signs, thousands separators, percent signs and spaces are ignored.
    Anything unparsable (including NaN/inf) becomes 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        cleaned = _NUMERIC_NOISE.sub("", str(value))
        try:
            result = float(cleaned)
        except ValueError:
            return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def clean_cell_text(value: Any) -> str:
    """Strip direction marks and collapse whitespace in an imported text cell"""
    if value is None:
        return ""
    text = _DIRECTION_MARKS.sub("", str(value))
    return _WHITESPACE.sub(" ", text).strip()


def clean_identifier(value: Any) -> Optional[str]:
    """Normalize a product/policy number cell; blank becomes None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = clean_cell_text(value)
    return text or None


class ProductKind(str, Enum):
    """Kind of imported product row"""

    SAVINGS = "savings"
    INSURANCE = "insurance"


class ProductRole(str, Enum):
    """Whether a selected product is the client's current or a recommended one"""

    CURRENT = "current"
    RECOMMENDED = "recommended"


class SourceKind(str, Enum):
    """Clearinghouse export a taxonomy row was derived from"""

    GEMEL = "gemel"
    PENSION = "pension"
    INSURANCE = "insurance"


class MatchMethod(str, Enum):
    """Which step of the matching cascade produced the result"""

    PRODUCT_CODE = "code"
    SCOPED_NUMBER = "scoped_number"
    SCOPED = "scoped"
    FALLBACK = "fallback"


class NumberSource(str, Enum):
    """Where the product number used for lookups came from"""

    EXPLICIT = "explicit"
    SUB_CATEGORY = "sub_category"
    CATEGORY = "category"
    NONE = "none"


class ResolutionPath(str, Enum):
    """How the exposure resolver found its taxonomy row"""

    PRODUCT_NUMBER = "product_number"
    COMPANY_AND_TRACK = "company_and_track"
    FIELD_SCAN = "field_scan"


# ============================================================================
# Taxonomy Models
# ============================================================================


class ExposureData(BaseModel):
    """Asset exposure percentages of one product track"""

    exposure_stocks: Optional[float] = Field(None, description="Stocks %")
    exposure_bonds: Optional[float] = Field(None, description="Bonds %")
    exposure_foreign_currency: Optional[float] = Field(
        None, description="Foreign currency %"
    )
    exposure_foreign_investments: Optional[float] = Field(
        None, description="Foreign investments %"
    )
    exposure_israel: Optional[float] = Field(None, description="Israel %")
    exposure_illiquid_assets: Optional[float] = Field(
        None, description="Illiquid assets %"
    )
    asset_composition: Optional[str] = Field(
        None, description="Free-text asset composition"
    )

    @property
    def has_exposure(self) -> bool:
        """True if at least one percentage is reported and non-zero"""
        return any(getattr(self, name) for name in EXPOSURE_FIELDS)

    def percentages(self) -> dict[str, Optional[float]]:
        """The six exposure percentages keyed by field name"""
        return {name: getattr(self, name) for name in EXPOSURE_FIELDS}


class TaxonomyRow(BaseModel):
    """One canonical product definition from the reference taxonomy"""

    company: str = Field("", description="Canonical manager/insurer name")
    category: str = Field("", description="Product family")
    old_track_name: str = Field("", description="Historical track label")
    new_track_name: str = Field("", description="Current track label (sub-category)")
    product_number: str = Field("", description="Unique external identifier")

    exposure_foreign_currency: Optional[float] = None
    exposure_foreign_investments: Optional[float] = None
    exposure_israel: Optional[float] = None
    exposure_stocks: Optional[float] = None
    exposure_bonds: Optional[float] = None
    exposure_illiquid_assets: Optional[float] = None
    asset_composition: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    @field_validator(
        "company",
        "category",
        "old_track_name",
        "new_track_name",
        "product_number",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Database NULLs become empty strings, numeric codes become text"""
        if v is None:
            return ""
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v)

    @property
    def track_name(self) -> str:
        """Canonical track label, falling back to the historical one"""
        return self.new_track_name or self.old_track_name

    @property
    def exposure(self) -> ExposureData:
        """Exposure fields of this row, None preserved"""
        return ExposureData(
            **{name: getattr(self, name) for name in EXPOSURE_FIELDS},
            asset_composition=self.asset_composition,
        )


class ProductNumberCollision(BaseModel):
    """Two taxonomy rows sharing one product number (the later row wins)"""

    product_number: str
    replaced: TaxonomyRow
    kept: TaxonomyRow

    model_config = ConfigDict(frozen=True)


class ClearinghouseAssetRow(BaseModel):
    """
    One asset-allocation line from a pension clearinghouse export.

    The gemel, pension and insurance files use different column names; the
    external parser maps them onto this shape and tags the row with its kind.
    """

    kind: SourceKind
    track_number: str = Field("", description="Fund/track identifier")
    company: str = Field("", description="Managing company")
    track_name: str = Field("", description="Fund/track name")
    asset_type_id: str = Field("", description="Asset type code (e.g. 4705)")
    percentage: float = Field(0.0, description="Share of the asset type")
    report_date: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("track_number", "company", "track_name", "asset_type_id", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return clean_identifier(v) or ""

    @field_validator("percentage", mode="before")
    @classmethod
    def coerce_percentage(cls, v: Any) -> float:
        return parse_number(v)


class MaslulCodeParts(BaseModel):
    """Parts of the 30-digit investment track code"""

    hp_number: str = Field(..., description="Company registration number (9 digits)")
    tax_approval_number: str = Field(
        ..., description="Fund tax approval number (14 digits)"
    )
    track_number: str = Field(..., description="Investment track number (7 digits)")


# ============================================================================
# Import Models (Input from external parsers)
# ============================================================================


class ImportedProductRecord(BaseModel):
    """Raw product row extracted from an Excel/XML/ZIP export"""

    kind: ProductKind = Field(ProductKind.SAVINGS)
    product_type: str = Field("", description="Free-text product type/category")
    product_name: str = Field("", description="Free-text product name")
    plan_name: str = Field("", description="Free-text plan name")
    investment_track: str = Field("", description="Free-text investment track")
    manufacturer: str = Field("", description="Free-text company label")

    amount: float = Field(0.0, description="Accumulation (savings) or premium")
    deposit_fee: float = Field(0.0, description="Management fee on deposit %")
    accumulation_fee: float = Field(0.0, description="Management fee on accumulation %")

    product_number: Optional[str] = None
    policy_number: Optional[str] = None

    @field_validator(
        "product_type",
        "product_name",
        "plan_name",
        "investment_track",
        "manufacturer",
        mode="before",
    )
    @classmethod
    def clean_text(cls, v: Any) -> str:
        return clean_cell_text(v)

    @field_validator("amount", "deposit_fee", "accumulation_fee", mode="before")
    @classmethod
    def parse_numeric(cls, v: Any) -> float:
        return parse_number(v)

    @field_validator("product_number", "policy_number", mode="before")
    @classmethod
    def clean_number(cls, v: Any) -> Optional[str]:
        return clean_identifier(v)

    @property
    def dedup_key(self) -> tuple:
        """Composite key used to merge duplicate rows of the same product"""
        policy = self.policy_number or ""
        if self.kind == ProductKind.INSURANCE:
            return (
                self.kind.value,
                self.product_type,
                self.manufacturer,
                self.product_name,
                policy,
            )
        return (
            self.kind.value,
            self.product_name,
            self.plan_name,
            self.manufacturer,
            policy,
        )


# ============================================================================
# Matching Results
# ============================================================================


class FieldMatch(BaseModel):
    """Outcome of matching one free-text field against taxonomy candidates"""

    value: str = Field(..., description="Matched candidate or fallback value")
    score: float = Field(0.0, ge=0.0, le=1.0, description="Best candidate score")
    matched: bool = Field(False, description="A candidate cleared the threshold")
    original_input: str = Field("", description="Raw input text")


class ResolvedMatch(BaseModel):
    """Resolved product identity plus exposure data"""

    category: str = ""
    sub_category: str = ""
    company: str = ""
    product_number: Optional[str] = None

    exposure_stocks: Optional[float] = None
    exposure_bonds: Optional[float] = None
    exposure_foreign_currency: Optional[float] = None
    exposure_foreign_investments: Optional[float] = None
    exposure_israel: Optional[float] = None
    exposure_illiquid_assets: Optional[float] = None
    asset_composition: Optional[str] = None

    @classmethod
    def build(
        cls,
        category: str,
        sub_category: str,
        company: str,
        product_number: Optional[str] = None,
        exposure: Optional[ExposureData] = None,
    ) -> "ResolvedMatch":
        """Create a match, copying exposure fields when a row was resolved"""
        exposure_fields = exposure.model_dump() if exposure else {}
        return cls(
            category=category,
            sub_category=sub_category,
            company=company,
            product_number=product_number,
            **exposure_fields,
        )

    @property
    def exposure(self) -> ExposureData:
        return ExposureData(
            **{name: getattr(self, name) for name in EXPOSURE_FIELDS},
            asset_composition=self.asset_composition,
        )


class MatchOutcome(BaseModel):
    """Structured trace of one smart-matching call"""

    result: ResolvedMatch
    matched_via: MatchMethod
    score: float = Field(0.0, ge=0.0, le=1.0)
    product_number_source: NumberSource = NumberSource.NONE
    category_match: Optional[FieldMatch] = None
    company_match: Optional[FieldMatch] = None
    sub_category_match: Optional[FieldMatch] = None
    resolution_path: Optional[ResolutionPath] = None

    @property
    def exposure_found(self) -> bool:
        """True if a taxonomy row was resolved for exposure data"""
        return self.resolution_path is not None


# ============================================================================
# Output Models (consumed by report/UI layer)
# ============================================================================


class SelectedProduct(BaseModel):
    """Canonical product record consumed by the rest of the application"""

    id: str = Field(..., description="Caller-generated unique identifier")
    category: str = Field("", description="Resolved category")
    sub_category: str = Field("", description="Resolved sub-category (track)")
    company: str = Field("", description="Resolved company")

    amount: float = Field(0.0)
    management_fee_on_deposit: float = Field(0.0)
    management_fee_on_accumulation: float = Field(0.0)
    investment_track: str = Field("")
    type: ProductRole = Field(ProductRole.CURRENT)
    product_number: Optional[str] = None

    exposure_stocks: Optional[float] = None
    exposure_bonds: Optional[float] = None
    exposure_foreign_currency: Optional[float] = None
    exposure_foreign_investments: Optional[float] = None
    exposure_israel: Optional[float] = None
    exposure_illiquid_assets: Optional[float] = None
    include_exposure_data: bool = Field(
        False, description="Derived: any exposure field defined and non-zero"
    )

    notes: str = Field("")

    def model_post_init(self, __context) -> None:
        """Derive include_exposure_data from the exposure fields"""
        self.include_exposure_data = any(
            getattr(self, name) for name in EXPOSURE_FIELDS
        )


class ImportKpis(BaseModel):
    """Headline figures of an imported file"""

    savings_product_count: int = Field(0, ge=0)
    total_accumulation: float = Field(0.0)
    avg_accumulation_fee: float = Field(
        0.0, description="Accumulation fee weighted by amount"
    )
    avg_deposit_fee: float = Field(0.0, description="Simple average deposit fee")
    insurance_policy_count: int = Field(0, ge=0)
    total_monthly_premium: float = Field(0.0)


class ProductComparison(BaseModel):
    """Current vs recommended portfolio summary"""

    current_total_amount: float = 0.0
    recommended_total_amount: float = 0.0
    current_avg_deposit_fee: float = 0.0
    recommended_avg_deposit_fee: float = 0.0
    current_avg_accumulation_fee: float = 0.0
    recommended_avg_accumulation_fee: float = 0.0
    deposit_fee_difference: float = 0.0
    accumulation_fee_difference: float = 0.0
    current_exposure: ExposureData = Field(default_factory=ExposureData)
    recommended_exposure: ExposureData = Field(default_factory=ExposureData)


class ImportResult(BaseModel):
    """Result of running the import pipeline over a batch of records"""

    products: list[SelectedProduct] = Field(default_factory=list)
    outcomes: list[MatchOutcome] = Field(default_factory=list)
    kpis: ImportKpis = Field(default_factory=ImportKpis)
    duplicates_merged: int = Field(0, ge=0)


__all__ = [
    "EXPOSURE_FIELDS",
    "parse_number",
    "clean_cell_text",
    "clean_identifier",
    # Enums
    "ProductKind",
    "ProductRole",
    "SourceKind",
    "MatchMethod",
    "NumberSource",
    "ResolutionPath",
    # Taxonomy
    "ExposureData",
    "TaxonomyRow",
    "ClearinghouseAssetRow",
    "MaslulCodeParts",
    # Import / output
    "ImportedProductRecord",
    "SelectedProduct",
    "ImportKpis",
    "ProductComparison",
    "ImportResult",
    # Matching
    "FieldMatch",
    "ResolvedMatch",
    "MatchOutcome",
]

"""
Supplier Models
===============

Suppliers, their sites, and the risk dimensions the engine owns.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    """Coarse risk classification derived from the overall score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Dimension(str, Enum):
    """The seven risk axes scored per supplier."""

    LOCATION = "location"
    SECTOR = "sector"
    HUMAN_RIGHTS = "human_rights"
    ENVIRONMENTAL = "environmental"
    CHEMICAL = "chemical"
    MINERAL = "mineral"
    PERFORMANCE = "performance"

    @property
    def field(self) -> str:
        """Name of the supplier attribute holding this dimension."""
        return f"{self.value}_risk"

    @property
    def label(self) -> str:
        """Human readable label used in alert text."""
        return _DIMENSION_LABELS[self]


_DIMENSION_LABELS = {
    Dimension.LOCATION: "Location",
    Dimension.SECTOR: "Sector",
    Dimension.HUMAN_RIGHTS: "Human Rights",
    Dimension.ENVIRONMENTAL: "Environmental",
    Dimension.CHEMICAL: "Chemical/PFAS",
    Dimension.MINERAL: "Minerals",
    Dimension.PERFORMANCE: "Performance",
}


class FacilityType(str, Enum):
    """Kinds of supplier facilities."""

    FACTORY = "factory"
    WAREHOUSE = "warehouse"
    PORT = "port"
    OFFICE = "office"
    DISTRIBUTION_CENTER = "distribution_center"
    OTHER = "other"


class Supplier(BaseModel):
    """
    A supplier under risk evaluation.

    The ``*_risk``, ``risk_score`` and ``risk_level`` fields are written
    only by the risk engine. ``None`` means the value was never set.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    legal_name: str
    country: str | None = None
    nace_code: str | None = None

    # Master data feeding data completeness
    city: str | None = None
    address: str | None = None
    vat_number: str | None = None
    website: str | None = None

    # Risk dimensions (0-100)
    location_risk: int | None = Field(default=None, ge=0, le=100)
    sector_risk: int | None = Field(default=None, ge=0, le=100)
    human_rights_risk: int | None = Field(default=None, ge=0, le=100)
    environmental_risk: int | None = Field(default=None, ge=0, le=100)
    chemical_risk: int | None = Field(default=None, ge=0, le=100)
    mineral_risk: int | None = Field(default=None, ge=0, le=100)
    performance_risk: int | None = Field(default=None, ge=0, le=100)

    # Pre-questionnaire values of the questionnaire-adjusted dimensions,
    # keyed by dimension name. Captured on first recompute.
    risk_baselines: dict[str, int] = Field(default_factory=dict)

    risk_score: int | None = Field(default=None, ge=0, le=100)
    risk_level: RiskLevel | None = None
    data_completeness: int = Field(default=0, ge=0, le=100)

    version: int = 0
    last_assessment_at: datetime | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def dimension(self, dimension: Dimension) -> int | None:
        """Stored value of one dimension."""
        return getattr(self, dimension.field)


class Site(BaseModel):
    """A physical site operated by a supplier."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    supplier_id: str
    country: str | None = None
    facility_type: FacilityType | str = FacilityType.OTHER
    certifications: list[str] = Field(default_factory=list)
    site_risk_score: int | None = Field(default=None, ge=0, le=100)

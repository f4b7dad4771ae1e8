"""
Data model for multi-source property comparisons.

Property is the reference record owned by the primary CRM feed. The
remaining dataclasses are computed fresh on every comparison run.
"""

from dataclasses import dataclass, field, fields as dataclass_fields, asdict
from typing import Any, Dict, List, Optional


SOURCE_STATUSES = ('connected', 'error', 'loading', 'not_configured')


@dataclass(frozen=True)
class Property:
    """Reference property as stored from the primary CRM feed"""
    id: Any
    title: str = ""
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    postcode: Optional[str] = None
    ber_rating: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = field(default_factory=list)
    agent_name: Optional[str] = None
    agent_phone: Optional[str] = None
    agent_email: Optional[str] = None
    status: Optional[str] = None
    agency_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Property':
        """Build a Property from a database row or JSON object, ignoring unknown keys"""
        known = {f.name for f in dataclass_fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        if values.get('images') is None:
            values['images'] = []
        return cls(**values)

    @property
    def search_text(self) -> str:
        """Text used to search secondary sources for this property"""
        return self.address or self.title or ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DataSource:
    """Per-source metadata and connection status for one comparison run"""
    name: str
    display_name: str
    color: str = ""
    icon: str = ""
    endpoint: Optional[str] = None
    status: str = 'not_configured'
    last_sync: Optional[str] = None
    error_message: Optional[str] = None
    match_found: bool = False

    def __post_init__(self):
        assert self.status in SOURCE_STATUSES, f"Invalid source status: {self.status}"


@dataclass
class ComparisonField:
    """Comparison of one canonical attribute across every configured source"""
    key: str
    label: str
    type: str
    weight: float
    sources: Dict[str, Any]
    display_values: Dict[str, str]
    has_differences: bool
    significant_difference: bool
    confidence_score: int
    recommendations: List[str] = field(default_factory=list)


@dataclass
class ConsistencyReport:
    """Aggregated consistency over all compared fields"""
    overall_consistency: int
    critical_issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


@dataclass
class PropertyComparison:
    """Complete result of reconciling one property across sources"""
    property: Property
    fields: List[ComparisonField]
    sources: List[DataSource]
    last_updated: str
    overall_consistency: int
    critical_issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def get_field(self, key: str) -> Optional[ComparisonField]:
        for comparison_field in self.fields:
            if comparison_field.key == key:
                return comparison_field
        return None

    def get_source(self, name: str) -> Optional[DataSource]:
        for source in self.sources:
            if source.name == name:
                return source
        return None

    @property
    def inconsistent_fields(self) -> List[ComparisonField]:
        return [f for f in self.fields if f.has_differences]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

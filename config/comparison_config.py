"""
Comparison Configuration for the Multi-Source Property Reconciliation Engine

This module loads configuration from comparison_config.yaml and provides
typed access to source, field, matching and threshold settings.

Sources:
- Acquaint (primary CRM feed): the reference record, never fetched
- Daft: public listing API, searched by address
- MyHome: public listing API, searched by county
- WordPress: per-agency site, searched by listing title
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


FIELD_TYPES = ('text', 'number', 'currency', 'date', 'rating')


@dataclass
class FieldSpec:
    """Canonical attribute descriptor"""
    key: str
    label: str
    type: str
    weight: float

    def __post_init__(self):
        assert self.type in FIELD_TYPES, f"Invalid field type for {self.key}: {self.type}"
        assert 0 <= self.weight <= 1, f"Weight must be between 0 and 1: {self.weight}"


@dataclass
class SourceSettings:
    """Configuration for a single data source"""
    name: str
    display_name: str
    color: str = "#6b7280"
    icon: str = ""
    endpoint: Optional[str] = None
    enabled: bool = True
    primary: bool = False
    timeout_seconds: float = 10.0

    # canonical attribute -> native field name
    field_map: Dict[str, str] = field(default_factory=dict)

    # Native fields tried in order when reading a candidate's address
    address_fields: List[str] = field(default_factory=list)

    def __post_init__(self):
        assert self.timeout_seconds > 0, f"Timeout must be positive: {self.timeout_seconds}"


@dataclass
class MatchingSettings:
    """Weights and threshold for candidate matching"""
    price_weight: float = 0.4
    bedroom_weight: float = 0.2
    address_weight: float = 0.4
    bedroom_penalty: float = 25.0  # points lost per bedroom of difference
    exact_address_score: float = 100.0
    contained_address_score: float = 80.0
    min_match_score: float = 50.0  # winner must score strictly above this


@dataclass
class ThresholdSettings:
    """Thresholds used when classifying field differences"""
    numeric_difference_ratio: float = 0.01  # >1% spread counts as a difference
    significant_currency_ratio: float = 0.05  # >5% spread on an important field
    significant_currency_weight: float = 0.15
    significant_number_weight: float = 0.1
    significant_other_weight: float = 0.2
    low_consistency_ratio: float = 0.7
    min_connected_sources: int = 3


@dataclass
class DisplaySettings:
    currency_symbol: str = "€"
    date_format: str = "%d/%m/%Y"
    placeholder: str = "-"


DEFAULT_FIELDS = [
    {"key": "price", "label": "Price", "type": "currency", "weight": 0.3},
    {"key": "bedrooms", "label": "Bedrooms", "type": "number", "weight": 0.2},
    {"key": "bathrooms", "label": "Bathrooms", "type": "number", "weight": 0.15},
    {"key": "type", "label": "Property Type", "type": "text", "weight": 0.1},
    {"key": "address", "label": "Address", "type": "text", "weight": 0.1},
    {"key": "county", "label": "County", "type": "text", "weight": 0.05},
    {"key": "ber_rating", "label": "BER Rating", "type": "rating", "weight": 0.1},
]

DEFAULT_SOURCES = [
    {
        "name": "acquaint",
        "display_name": "Acquaint",
        "color": "#3b82f6",
        "icon": "🏢",
        "endpoint": "https://www.acquaintcrm.co.uk/datafeeds/standardxml/",
        "primary": True,
        "field_map": {
            "price": "price",
            "bedrooms": "bedrooms",
            "bathrooms": "bathrooms",
            "type": "type",
            "address": "address",
            "county": "county",
            "ber_rating": "ber_rating",
        },
        "address_fields": ["address", "title"],
    },
    {
        "name": "daft",
        "display_name": "Daft",
        "color": "#10b981",
        "icon": "🏠",
        "endpoint": "https://www.daft.ie/api",
        "timeout_seconds": 10.0,
        "field_map": {
            "price": "price",
            "bedrooms": "bedrooms",
            "bathrooms": "bathrooms",
            "type": "propertyType",
            "address": "address",
            "county": "county",
            "ber_rating": "berRating",
        },
        "address_fields": ["address", "displayAddress"],
    },
    {
        "name": "myhome",
        "display_name": "MyHome",
        "color": "#f59e0b",
        "icon": "🏡",
        "endpoint": "https://www.myhome.ie/api",
        "timeout_seconds": 15.0,
        "field_map": {
            "price": "price",
            "bedrooms": "bedrooms",
            "bathrooms": "bathrooms",
            "type": "propertyType",
            "address": "displayAddress",
            "county": "county",
            "ber_rating": "berRating",
        },
        "address_fields": ["displayAddress", "address"],
    },
    {
        "name": "wordpress",
        "display_name": "WordPress",
        "color": "#8b5cf6",
        "icon": "📝",
        "endpoint": None,
        "timeout_seconds": 15.0,
        "field_map": {
            "price": "price",
            "bedrooms": "bedrooms",
            "bathrooms": "bathrooms",
            "type": "propertyType",
            "address": "address",
            "county": "propertyCounty",
            "ber_rating": "berRating",
        },
        "address_fields": ["address", "title"],
    },
]

DEFAULT_AGENCY_WORDPRESS_URLS = {
    "KNAM": "https://caseykennedy.ie",
    "BSKY": "https://blueskyproperties.ie",
}


def _load_yaml_config() -> Dict:
    """Load configuration from YAML file"""
    config_path = Path(__file__).parent / "comparison_config.yaml"

    if not config_path.exists():
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config or {}
    except Exception as e:
        logger.error(f"Error loading config from {config_path}: {e}")
        return {}


def _create_source_settings(source_yaml: Dict, default_timeout: float) -> SourceSettings:
    """Create SourceSettings from YAML config with environment variable overrides"""
    name = source_yaml['name']

    # e.g. DAFT_API_URL, MYHOME_API_URL
    endpoint = os.getenv(f"{name.upper()}_API_URL", source_yaml.get('endpoint'))

    return SourceSettings(
        name=name,
        display_name=source_yaml.get('display_name', name.title()),
        color=source_yaml.get('color', "#6b7280"),
        icon=source_yaml.get('icon', ""),
        endpoint=endpoint,
        enabled=source_yaml.get('enabled', True),
        primary=source_yaml.get('primary', False),
        timeout_seconds=float(source_yaml.get('timeout_seconds', default_timeout)),
        field_map=dict(source_yaml.get('field_map', {})),
        address_fields=list(source_yaml.get('address_fields', [])),
    )


@dataclass
class ComparisonConfig:
    """Main configuration class for the reconciliation engine"""

    # Sources in display order; exactly one is primary
    sources: List[SourceSettings] = field(default_factory=list)

    # Canonical attributes in comparison order
    fields: List[FieldSpec] = field(default_factory=list)

    matching: MatchingSettings = field(default_factory=MatchingSettings)
    thresholds: ThresholdSettings = field(default_factory=ThresholdSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)

    # Agency code -> WordPress site base URL
    agency_wordpress_urls: Dict[str, str] = field(default_factory=dict)

    # HTTP settings
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    batch_search_delay: float = 1.0  # seconds between searches in a batch

    # Logging
    log_file: str = "comparison.log"
    log_level: str = "INFO"

    # Concurrency
    max_concurrent_comparisons: int = 3

    def get_source(self, name: str) -> SourceSettings:
        """Get settings for a source by name"""
        for source in self.sources:
            if source.name == name:
                return source
        raise ValueError(f"Unknown source: {name}")

    def get_field(self, key: str) -> FieldSpec:
        """Get the canonical field descriptor for an attribute key"""
        for spec in self.fields:
            if spec.key == key:
                return spec
        raise ValueError(f"Unknown canonical attribute: {key}")

    @property
    def primary_source(self) -> SourceSettings:
        for source in self.sources:
            if source.primary:
                return source
        raise ValueError("No primary source configured")

    @property
    def secondary_sources(self) -> List[SourceSettings]:
        return [source for source in self.sources if not source.primary]

    @property
    def source_names(self) -> List[str]:
        return [source.name for source in self.sources]

    @property
    def field_keys(self) -> List[str]:
        return [spec.key for spec in self.fields]

    def get_wordpress_url(self, agency_id: Optional[str]) -> Optional[str]:
        """Resolve the WordPress base URL configured for an agency"""
        if not agency_id:
            return None
        return self.agency_wordpress_urls.get(str(agency_id).upper())


def _build_config_from_yaml(yaml_config: Dict) -> ComparisonConfig:
    """Build ComparisonConfig from YAML configuration"""

    default_timeout = float(os.getenv("SOURCE_TIMEOUT_SECONDS", 10.0))

    sources = [
        _create_source_settings(source_yaml, default_timeout)
        for source_yaml in yaml_config.get('sources', DEFAULT_SOURCES)
    ]

    fields = [
        FieldSpec(
            key=field_yaml['key'],
            label=field_yaml.get('label', field_yaml['key'].replace('_', ' ').title()),
            type=field_yaml.get('type', 'text'),
            weight=float(field_yaml.get('weight', 0.1)),
        )
        for field_yaml in yaml_config.get('fields', DEFAULT_FIELDS)
    ]

    # Extract nested config sections
    matching = yaml_config.get('matching', {})
    thresholds = yaml_config.get('thresholds', {})
    display = yaml_config.get('display', {})
    http = yaml_config.get('http', {})
    logging_config = yaml_config.get('logging', {})
    concurrency = yaml_config.get('concurrency', {})

    agency_urls = yaml_config.get('agency_wordpress_urls', DEFAULT_AGENCY_WORDPRESS_URLS)

    return ComparisonConfig(
        sources=sources,
        fields=fields,

        matching=MatchingSettings(
            price_weight=matching.get('price_weight', 0.4),
            bedroom_weight=matching.get('bedroom_weight', 0.2),
            address_weight=matching.get('address_weight', 0.4),
            bedroom_penalty=matching.get('bedroom_penalty', 25.0),
            exact_address_score=matching.get('exact_address_score', 100.0),
            contained_address_score=matching.get('contained_address_score', 80.0),
            min_match_score=float(os.getenv(
                "COMPARISON_MATCH_THRESHOLD", matching.get('min_match_score', 50.0)
            )),
        ),

        thresholds=ThresholdSettings(
            numeric_difference_ratio=thresholds.get('numeric_difference_ratio', 0.01),
            significant_currency_ratio=thresholds.get('significant_currency_ratio', 0.05),
            significant_currency_weight=thresholds.get('significant_currency_weight', 0.15),
            significant_number_weight=thresholds.get('significant_number_weight', 0.1),
            significant_other_weight=thresholds.get('significant_other_weight', 0.2),
            low_consistency_ratio=thresholds.get('low_consistency_ratio', 0.7),
            min_connected_sources=thresholds.get('min_connected_sources', 3),
        ),

        display=DisplaySettings(
            currency_symbol=display.get('currency_symbol', "€"),
            date_format=display.get('date_format', "%d/%m/%Y"),
            placeholder=display.get('placeholder', "-"),
        ),

        agency_wordpress_urls={str(k).upper(): v for k, v in agency_urls.items()},

        # HTTP
        user_agent=http.get('user_agent', "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"),
        batch_search_delay=http.get('batch_search_delay', 1.0),

        # Logging
        log_file=logging_config.get('log_file', "comparison.log"),
        log_level=os.getenv("COMPARISON_LOG_LEVEL", logging_config.get('log_level', "INFO")),

        # Concurrency
        max_concurrent_comparisons=concurrency.get('max_concurrent_comparisons', 3),
    )


# Global configuration instance
_config: Optional[ComparisonConfig] = None


def get_config(reload: bool = False) -> ComparisonConfig:
    """
    Get the global configuration instance.

    Args:
        reload: If True, reload configuration from YAML file

    Returns:
        ComparisonConfig instance
    """
    global _config
    if _config is None or reload:
        yaml_config = _load_yaml_config()
        _config = _build_config_from_yaml(yaml_config)
    return _config


def reload_config() -> ComparisonConfig:
    """Force reload configuration from YAML file"""
    return get_config(reload=True)


def set_config(config: ComparisonConfig) -> None:
    """Set the global configuration instance (useful for testing)"""
    global _config
    _config = config


def build_default_config() -> ComparisonConfig:
    """Build a configuration from in-code defaults only, ignoring the YAML file"""
    return _build_config_from_yaml({})

import pytest

from config import comparison_config as config_module
from config.comparison_config import (
    FieldSpec,
    SourceSettings,
    build_default_config,
    get_config,
    set_config,
)


def test_default_sources_and_fields():
    config = build_default_config()

    assert config.source_names == ["acquaint", "daft", "myhome", "wordpress"]
    assert config.primary_source.name == "acquaint"
    assert [s.name for s in config.secondary_sources] == ["daft", "myhome", "wordpress"]
    assert config.field_keys == ["price", "bedrooms", "bathrooms", "type", "address", "county", "ber_rating"]
    assert config.get_field("price").type == "currency"
    assert config.get_source("daft").field_map["type"] == "propertyType"
    assert config.get_source("myhome").timeout_seconds == 15.0
    assert config.matching.min_match_score == 50.0
    assert config.thresholds.min_connected_sources == 3


def test_unknown_names_raise():
    config = build_default_config()

    with pytest.raises(ValueError):
        config.get_source("rightmove")
    with pytest.raises(ValueError):
        config.get_field("floor_area")


def test_invalid_descriptors_are_rejected():
    with pytest.raises(AssertionError):
        FieldSpec(key="price", label="Price", type="money", weight=0.3)
    with pytest.raises(AssertionError):
        FieldSpec(key="price", label="Price", type="currency", weight=1.5)
    with pytest.raises(AssertionError):
        SourceSettings(name="daft", display_name="Daft", timeout_seconds=0)


def test_wordpress_url_lookup_is_case_insensitive():
    config = build_default_config()

    assert config.get_wordpress_url("knam") == "https://caseykennedy.ie"
    assert config.get_wordpress_url("BSKY") == "https://blueskyproperties.ie"
    assert config.get_wordpress_url(None) is None
    assert config.get_wordpress_url("ZZZ") is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DAFT_API_URL", "http://localhost:8080/daft")
    monkeypatch.setenv("COMPARISON_MATCH_THRESHOLD", "65")
    monkeypatch.setenv("SOURCE_TIMEOUT_SECONDS", "4")
    monkeypatch.setenv("COMPARISON_LOG_LEVEL", "DEBUG")

    config = build_default_config()

    assert config.get_source("daft").endpoint == "http://localhost:8080/daft"
    assert config.matching.min_match_score == 65.0
    # explicit per-source timeouts win over the default
    assert config.get_source("daft").timeout_seconds == 10.0
    assert config.get_source("acquaint").timeout_seconds == 4.0
    assert config.log_level == "DEBUG"


def test_yaml_sections_override_defaults():
    config = config_module._build_config_from_yaml({
        "fields": [{"key": "price", "type": "currency", "weight": 0.5}],
        "matching": {"min_match_score": 70},
        "thresholds": {"low_consistency_ratio": 0.8},
        "display": {"currency_symbol": "£"},
        "agency_wordpress_urls": {"abc": "https://abc.example"},
        "concurrency": {"max_concurrent_comparisons": 5},
    })

    assert config.field_keys == ["price"]
    assert config.get_field("price").label == "Price"
    assert config.matching.min_match_score == 70.0
    assert config.thresholds.low_consistency_ratio == 0.8
    assert config.display.currency_symbol == "£"
    assert config.get_wordpress_url("ABC") == "https://abc.example"
    assert config.max_concurrent_comparisons == 5


def test_bundled_yaml_matches_defaults(monkeypatch):
    monkeypatch.delenv("COMPARISON_MATCH_THRESHOLD", raising=False)
    set_config(None)
    try:
        loaded = get_config(reload=True)
        defaults = build_default_config()

        assert loaded.source_names == defaults.source_names
        assert loaded.field_keys == defaults.field_keys
        assert [f.weight for f in loaded.fields] == [f.weight for f in defaults.fields]
        assert loaded.get_source("wordpress").field_map == defaults.get_source("wordpress").field_map
        assert loaded.agency_wordpress_urls == defaults.agency_wordpress_urls
        assert get_config() is loaded
    finally:
        set_config(None)


def test_missing_yaml_falls_back_to_defaults(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "__file__", str(tmp_path / "comparison_config.py"))

    assert config_module._load_yaml_config() == {}

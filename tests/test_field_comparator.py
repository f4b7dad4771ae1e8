import pytest

from config.comparison_config import FieldSpec
from services.field_comparator import CONSISTENT_MESSAGE, FieldComparator


@pytest.fixture
def comparator(comparison_config):
    return FieldComparator(comparison_config)


def test_small_price_spread_is_not_significant(comparator):
    field = comparator.compare_field("price", {
        "acquaint": 450000,
        "daft": 450000,
        "myhome": 450000,
        "wordpress": 455000,
    })

    assert field.has_differences is True
    assert field.significant_difference is False
    assert field.confidence_score == 75


def test_large_price_spread_is_significant(comparator):
    field = comparator.compare_field("price", {"acquaint": 450000, "daft": 380000})

    assert field.has_differences is True
    assert field.significant_difference is True
    assert field.sources == {"acquaint": 450000, "daft": 380000, "myhome": None, "wordpress": None}
    assert field.recommendations[0] == "Verify current market price with agent"


def test_sub_percent_spread_is_not_a_difference(comparator):
    field = comparator.compare_field("price", {"acquaint": 450000, "daft": 450001})

    assert field.has_differences is False
    assert field.significant_difference is False
    assert field.confidence_score == 50


def test_full_agreement_scores_100(comparator):
    field = comparator.compare_field("ber_rating", {
        "acquaint": "B3",
        "daft": "b3 ",
        "myhome": " B3",
        "wordpress": "B3",
    })

    assert field.has_differences is False
    assert field.confidence_score == 100
    assert field.recommendations == [CONSISTENT_MESSAGE]
    assert field.display_values["daft"] == "B3 "


def test_full_disagreement_scores_25(comparator):
    field = comparator.compare_field("type", {
        "acquaint": "Semi-Detached House",
        "daft": "House",
        "myhome": "Detached",
        "wordpress": "Semi-Detached",
    })

    assert field.has_differences is True
    assert field.significant_difference is False
    assert field.confidence_score == 25


def test_no_values_yields_zero_confidence(comparator):
    field = comparator.compare_field("county", {"acquaint": None, "daft": "", "myhome": None})

    assert field.has_differences is False
    assert field.significant_difference is False
    assert field.confidence_score == 0
    assert set(field.sources) == {"acquaint", "daft", "myhome", "wordpress"}
    assert all(value is None for value in field.sources.values())
    assert set(field.display_values.values()) == {"-"}


def test_bedroom_disagreement_is_significant(comparator):
    field = comparator.compare_field("bedrooms", {"acquaint": 3, "daft": 4})

    assert field.has_differences is True
    assert field.significant_difference is True
    assert "Confirm room count with property inspection" in field.recommendations


def test_zero_minimum_falls_back_to_equality(comparator):
    same = comparator.compare_field("bathrooms", {"acquaint": 0, "daft": 0})
    differ = comparator.compare_field("bathrooms", {"acquaint": 0, "daft": 2})

    assert same.has_differences is False
    assert differ.has_differences is True


def test_text_comparison_ignores_case_and_spacing(comparator):
    field = comparator.compare_field("address", {
        "acquaint": "123 Main Street, Dublin 4",
        "myhome": "  123 main   street, dublin 4 ",
    })

    assert field.has_differences is False
    assert field.display_values["acquaint"] == "123 Main Street, Dublin 4"


def test_text_difference_on_low_weight_field_is_not_significant(comparator):
    field = comparator.compare_field("address", {
        "acquaint": "123 Main Street, Dublin 4",
        "daft": "123 Main St, Dublin 4",
    })

    assert field.has_differences is True
    assert field.significant_difference is False
    assert field.recommendations == [
        "Standardize address format across platforms",
        "Verify with official postal service",
    ]


def test_unparseable_price_is_treated_as_absent(comparator):
    field = comparator.compare_field("price", {"acquaint": 450000, "daft": "POA"})

    assert field.has_differences is False
    assert field.confidence_score == 100
    assert field.display_values["daft"] == "POA"


def test_dates_compare_by_timestamp(comparator):
    spec = FieldSpec(key="last_updated", label="Last Updated", type="date", weight=0.05)

    same = comparator.compare_field(spec, {
        "acquaint": "2024-01-15T10:30:00Z",
        "daft": "2024-01-15T10:30:00+00:00",
    })
    differ = comparator.compare_field(spec, {
        "acquaint": "2024-01-15T10:30:00Z",
        "daft": "2024-01-14T15:45:00Z",
    })

    assert same.has_differences is False
    assert differ.has_differences is True
    assert differ.significant_difference is False
    assert differ.display_values["acquaint"] == "15/01/2024"
    assert differ.recommendations == ["Synchronize data across all platforms"]


def test_unknown_attribute_is_rejected(comparator):
    with pytest.raises(ValueError):
        comparator.compare_field("swimming_pool", {"acquaint": True})


def test_unknown_source_is_rejected(comparator):
    with pytest.raises(ValueError):
        comparator.compare_field("price", {"rightmove": 450000})


def test_scores_are_deterministic(comparator):
    values = {"acquaint": 450000, "daft": 448000, "myhome": 450000, "wordpress": 455000}

    first = comparator.compare_field("price", values)
    second = comparator.compare_field("price", dict(reversed(list(values.items()))))

    assert first == second


def test_format_value(comparator):
    assert comparator.format_value(450000, "currency") == "€450,000"
    assert comparator.format_value("1200", "number") == "1,200"
    assert comparator.format_value(120.5, "number") == "120.5"
    assert comparator.format_value("b2", "rating") == "B2"
    assert comparator.format_value("2024-01-16T08:20:00Z", "date") == "16/01/2024"
    assert comparator.format_value("House", "text") == "House"
    assert comparator.format_value(None, "currency") == "-"
    assert comparator.format_value("", "text") == "-"


def test_difference_percentage(comparator):
    assert comparator.difference_percentage(455000, 450000, "currency") == 1
    assert comparator.difference_percentage(380000, 450000, "currency") == -16
    assert comparator.difference_percentage(3, 0, "number") is None
    assert comparator.difference_percentage("House", "Flat", "text") is None

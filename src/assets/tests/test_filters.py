"""Tests for the asset filter and aggregation pipeline."""

from datetime import date
from decimal import Decimal

import pytest

from django.core.exceptions import ValidationError
from django.http import QueryDict

from assets.services.filters import (
    FilterCriteria,
    all_options,
    audit_view,
    dashboard_aggregates,
    filter_assets,
    options_for,
    summary_rows,
)


def _asset(**fields):
    record = {
        "asset_id": "A",
        "name": "Laptop",
        "type": "Laptop",
        "brand": "Lenovo",
        "configuration": "",
        "serial_number": "S",
        "status": "Available",
        "location": "Mumbai Office",
        "asset_condition": "",
        "asset_check": "",
        "warranty_end": None,
        "assigned_date": None,
        "return_date": None,
        "recovery_amount": None,
    }
    record.update(fields)
    return record


ASSETS = [
    _asset(asset_id="A1", type="Laptop", brand="Lenovo", status="Available"),
    _asset(
        asset_id="A2",
        type="Laptop",
        brand="Apple",
        status="Assigned",
        assigned_to="Jane Smith",
        assigned_date="2025-03-10T18:30:00",
    ),
    _asset(
        asset_id="A3",
        type="Monitor",
        brand="Dell",
        status="Scrap/Damage",
        location="Hyderabad WH",
        asset_condition="Broken stand",
    ),
    _asset(
        asset_id="A4",
        type="Tablet",
        brand="Lenovo",
        status="Sold",
        recovery_amount="1200.50",
        warranty_end="2999-01-01",
    ),
]


def _ids(assets):
    return [a["asset_id"] for a in assets]


class TestCriteria:
    def test_from_query_dict(self):
        query = QueryDict("type=Laptop&type=Monitor&type=Laptop&q=+dell+&from=2025-01-01")
        criteria = FilterCriteria.from_query(query)
        assert criteria.types == ("Laptop", "Monitor")
        assert criteria.search == "dell"
        assert criteria.date_from == date(2025, 1, 1)
        assert criteria.date_to is None

    def test_query_round_trip(self):
        criteria = FilterCriteria(statuses=("Available",), search="x")
        assert FilterCriteria.from_query(criteria.to_query()) == criteria
        assert criteria.querystring() == "status=Available&q=x"

    def test_invalid_date(self):
        with pytest.raises(ValidationError):
            FilterCriteria.from_query({"to": "yesterday"})

    def test_empty(self):
        assert FilterCriteria().is_empty
        assert not FilterCriteria(search="a").is_empty

    def test_without_unknown_field(self):
        with pytest.raises(ValueError):
            FilterCriteria().without("colour")


class TestFilterAssets:
    def test_empty_criteria_matches_all(self):
        assert filter_assets(ASSETS, FilterCriteria()) == ASSETS

    def test_multi_select_is_or_within_field_and_across_fields(self):
        criteria = FilterCriteria(types=("Laptop", "Tablet"), brands=("Lenovo",))
        assert _ids(filter_assets(ASSETS, criteria)) == ["A1", "A4"]

    def test_reapplying_criteria_changes_nothing(self):
        criteria = FilterCriteria(
            types=("Laptop", "Tablet"), conditions=("Unknown",), search="a"
        )
        once = filter_assets(ASSETS, criteria)
        assert once
        assert filter_assets(once, criteria) == once

    def test_search_is_case_insensitive_substring(self):
        assert _ids(filter_assets(ASSETS, FilterCriteria(search="jANE"))) == ["A2"]
        assert _ids(filter_assets(ASSETS, FilterCriteria(search="hyderabad"))) == [
            "A3"
        ]

    def test_blank_condition_counts_as_unknown(self):
        criteria = FilterCriteria(conditions=("Unknown",))
        assert _ids(filter_assets(ASSETS, criteria)) == ["A1", "A2", "A4"]

    def test_warranty_status_derived(self):
        criteria = FilterCriteria(warranty_statuses=("In Warranty",))
        assert _ids(filter_assets(ASSETS, criteria)) == ["A4"]

    def test_date_range_is_inclusive_of_whole_day(self):
        criteria = FilterCriteria(
            date_from=date(2025, 3, 10), date_to=date(2025, 3, 10)
        )
        assert _ids(filter_assets(ASSETS, criteria)) == ["A2"]

    def test_date_range_excludes_undated_assets(self):
        criteria = FilterCriteria(date_from=date(2026, 1, 1))
        assert filter_assets(ASSETS, criteria) == []


class TestOptions:
    def test_options_ignore_own_filter(self):
        criteria = FilterCriteria(types=("Monitor",))
        assert options_for("types", ASSETS, criteria) == [
            "Laptop",
            "Monitor",
            "Tablet",
        ]

    def test_options_respect_other_filters(self):
        criteria = FilterCriteria(types=("Laptop",))
        assert options_for("brands", ASSETS, criteria) == ["Apple", "Lenovo"]

    def test_all_options_keys(self):
        options = all_options(ASSETS, FilterCriteria())
        assert set(options) == {
            "type",
            "brand",
            "configuration",
            "location",
            "status",
            "condition",
            "warranty",
            "asset_check",
        }
        assert options["configuration"] == []
        assert options["asset_check"] == ["Unknown"]


class TestAggregates:
    def test_dashboard_excludes_sold_from_total(self):
        data = dashboard_aggregates(ASSETS)
        assert data["total"] == 3
        assert data["allocated"] == 1
        assert data["stock"] == 1
        assert data["scrap"] == 1
        assert data["sold"] == 1
        assert data["sold_recovery"] == Decimal("1200.50")
        assert data["types"]["all"] == {"Laptop": 2, "Monitor": 1}
        assert data["types"]["Assigned"] == {"Laptop": 1}

    def test_summary_groups_by_location_type_brand(self):
        summary = summary_rows(ASSETS, statuses=["Available", "Assigned"])
        keys = [(r["location"], r["type"], r["brand"]) for r in summary["rows"]]
        assert keys == [
            ("Hyderabad WH", "Monitor", "Dell"),
            ("Mumbai Office", "Laptop", "Apple"),
            ("Mumbai Office", "Laptop", "Lenovo"),
            ("Mumbai Office", "Tablet", "Lenovo"),
        ]
        assert summary["totals"] == {"Available": 1, "Assigned": 1}
        assert summary["total_recovery"] == Decimal("1200.50")

    def test_audit_drops_assigned_assets(self):
        result = audit_view(ASSETS, FilterCriteria(types=("Laptop",)))
        assert _ids(result["assets"]) == ["A1"]
        assert result["options"]["status"] == ["Available"]

    def test_works_with_model_instances(self, asset, assigned_asset):
        data = dashboard_aggregates([asset, assigned_asset])
        assert data["total"] == 2
        assert data["allocated"] == 1

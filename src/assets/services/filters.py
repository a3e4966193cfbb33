"""Filtering and aggregation over asset collections.

The list, dashboard, summary and audit views all derive from the same
pure pipeline: a :class:`FilterCriteria` value is applied to a collection
of assets (model instances or dicts) by :func:`filter_assets`. Dropdown
options for a filter are computed with that filter's own constraint
removed, so each list shows what would still match given the others.
"""

import dataclasses
from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from urllib.parse import urlencode

from django.core.exceptions import ValidationError
from django.utils import timezone

from .. import constants
from ..models import warranty_status_for

UNKNOWN = constants.ASSET_CONDITION_UNKNOWN

SEARCH_FIELDS = [
    "asset_id",
    "name",
    "type",
    "brand",
    "configuration",
    "serial_number",
    "employee_id",
    "assigned_to",
    "status",
    "location",
    "created_by",
    "updated_by",
    "received_by",
    "remarks",
    "warranty_start",
    "warranty_end",
    "asset_check",
]

# criteria attribute -> query string key
MULTI_KEYS = {
    "types": "type",
    "brands": "brand",
    "configurations": "configuration",
    "locations": "location",
    "statuses": "status",
    "conditions": "condition",
    "warranty_statuses": "warranty",
    "asset_checks": "asset_check",
}
SCALAR_KEYS = {"search": "q", "date_from": "from", "date_to": "to"}


def _raw(asset, field):
    if isinstance(asset, dict):
        return asset.get(field)
    return getattr(asset, field, None)


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def warranty_status(asset) -> str:
    """Warranty status of a model instance or an exported row dict."""
    end = _raw(asset, "warranty_end")
    if isinstance(end, str):
        end = date.fromisoformat(end) if end else None
    return warranty_status_for(end)


# criteria attribute -> how to read the compared value from an asset
VALUE_GETTERS = {
    "types": lambda a: _text(_raw(a, "type")),
    "brands": lambda a: _text(_raw(a, "brand")),
    "configurations": lambda a: _text(_raw(a, "configuration")),
    "locations": lambda a: _text(_raw(a, "location")),
    "statuses": lambda a: _text(_raw(a, "status")),
    "conditions": lambda a: _text(_raw(a, "asset_condition")) or UNKNOWN,
    "warranty_statuses": warranty_status,
    "asset_checks": lambda a: _text(_raw(a, "asset_check")) or UNKNOWN,
}


def _parse_date(value, key):
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"Invalid date for '{key}': {value}")


@dataclasses.dataclass(frozen=True)
class FilterCriteria:
    """Serializable set of active list filters.

    Empty tuples match everything.
    """

    types: tuple = ()
    brands: tuple = ()
    configurations: tuple = ()
    locations: tuple = ()
    statuses: tuple = ()
    conditions: tuple = ()
    warranty_statuses: tuple = ()
    asset_checks: tuple = ()
    search: str = ""
    date_from: date | None = None
    date_to: date | None = None

    @classmethod
    def from_query(cls, query) -> "FilterCriteria":
        """Build criteria from a QueryDict or a plain mapping."""
        values = {}
        for attr, key in MULTI_KEYS.items():
            if hasattr(query, "getlist"):
                raw = query.getlist(key)
            else:
                raw = query.get(key) or []
                if isinstance(raw, str):
                    raw = [raw]
            values[attr] = tuple(dict.fromkeys(v for v in raw if v))
        values["search"] = (query.get("q") or "").strip()
        values["date_from"] = _parse_date(query.get("from"), "from")
        values["date_to"] = _parse_date(query.get("to"), "to")
        return cls(**values)

    def to_query(self) -> dict:
        """Inverse of :meth:`from_query`; empty filters are omitted."""
        query = {}
        for attr, key in MULTI_KEYS.items():
            selected = getattr(self, attr)
            if selected:
                query[key] = list(selected)
        if self.search:
            query["q"] = self.search
        if self.date_from:
            query["from"] = self.date_from.isoformat()
        if self.date_to:
            query["to"] = self.date_to.isoformat()
        return query

    def querystring(self) -> str:
        return urlencode(self.to_query(), doseq=True)

    def without(self, field: str) -> "FilterCriteria":
        """Copy with ``field``'s constraint cleared."""
        if field in MULTI_KEYS:
            return dataclasses.replace(self, **{field: ()})
        if field == "search":
            return dataclasses.replace(self, search="")
        if field == "dates":
            return dataclasses.replace(self, date_from=None, date_to=None)
        raise ValueError(f"Unknown filter field '{field}'")

    @property
    def is_empty(self) -> bool:
        return self == FilterCriteria()


def matches_search(asset, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return any(needle in _text(_raw(asset, f)).lower() for f in SEARCH_FIELDS)


def _local_date(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def matches_dates(asset, date_from, date_to) -> bool:
    """True when assigned_date or return_date lies in the inclusive range.

    Comparing calendar days makes ``date_to`` cover its whole day.
    """
    if date_from is None and date_to is None:
        return True
    for field in ("assigned_date", "return_date"):
        day = _local_date(_raw(asset, field))
        if day is None:
            continue
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        return True
    return False


def matches(asset, criteria: FilterCriteria, exclude: str | None = None) -> bool:
    for attr, getter in VALUE_GETTERS.items():
        if attr == exclude:
            continue
        selected = getattr(criteria, attr)
        if selected and getter(asset) not in selected:
            return False
    if exclude != "search" and not matches_search(asset, criteria.search):
        return False
    if exclude != "dates" and not matches_dates(
        asset, criteria.date_from, criteria.date_to
    ):
        return False
    return True


def filter_assets(assets, criteria: FilterCriteria, exclude: str | None = None) -> list:
    """Assets matching every active filter except ``exclude``."""
    return [a for a in assets if matches(a, criteria, exclude=exclude)]


def options_for(field: str, assets, criteria: FilterCriteria) -> list[str]:
    """Sorted distinct values of ``field`` among assets matching the
    other filters."""
    getter = VALUE_GETTERS[field]
    values = {getter(a) for a in filter_assets(assets, criteria, exclude=field)}
    values.discard("")
    return sorted(values)


def all_options(assets, criteria: FilterCriteria) -> dict:
    assets = list(assets)
    return {
        MULTI_KEYS[field]: options_for(field, assets, criteria)
        for field in VALUE_GETTERS
    }


def _amount(asset) -> Decimal:
    value = _raw(asset, "recovery_amount")
    if value in (None, ""):
        return Decimal("0")
    return Decimal(str(value))


def dashboard_aggregates(assets) -> dict:
    """Dashboard cards: totals, status buckets and per-type breakdowns."""
    assets = list(assets)
    by_status = Counter(_text(_raw(a, "status")) for a in assets)
    in_inventory = [
        a for a in assets if _raw(a, "status") != constants.STATUS_SOLD
    ]

    def type_counts(status=None):
        counts = Counter(
            _text(_raw(a, "type"))
            for a in in_inventory
            if status is None or _raw(a, "status") == status
        )
        return dict(sorted((t, n) for t, n in counts.items() if n))

    return {
        "total": len(in_inventory),
        "allocated": by_status.get(constants.STATUS_ASSIGNED, 0),
        "stock": by_status.get(constants.STATUS_AVAILABLE, 0),
        "scrap": by_status.get(constants.STATUS_SCRAP, 0),
        "sold": by_status.get(constants.STATUS_SOLD, 0),
        "by_status": dict(sorted(by_status.items())),
        "types": {
            "all": type_counts(),
            constants.STATUS_ASSIGNED: type_counts(constants.STATUS_ASSIGNED),
            constants.STATUS_AVAILABLE: type_counts(constants.STATUS_AVAILABLE),
            constants.STATUS_SCRAP: type_counts(constants.STATUS_SCRAP),
        },
        "sold_recovery": sum(
            (_amount(a) for a in assets if _raw(a, "status") == constants.STATUS_SOLD),
            Decimal("0"),
        ),
    }


def summary_rows(assets, statuses=None) -> dict:
    """Location, type and brand grouping with per-status counts."""
    assets = list(assets)
    if statuses is None:
        statuses = sorted({_text(_raw(a, "status")) for a in assets} - {""})
    groups = {}
    for asset in assets:
        key = (
            _text(_raw(asset, "location")),
            _text(_raw(asset, "type")),
            _text(_raw(asset, "brand")),
        )
        row = groups.get(key)
        if row is None:
            row = {
                "location": key[0],
                "type": key[1],
                "brand": key[2],
                "counts": {s: 0 for s in statuses},
            }
            groups[key] = row
        status = _raw(asset, "status")
        if status in row["counts"]:
            row["counts"][status] += 1

    rows = [groups[k] for k in sorted(groups)]
    totals = {s: sum(r["counts"][s] for r in rows) for s in statuses}
    return {
        "statuses": list(statuses),
        "rows": rows,
        "totals": totals,
        "total_recovery": sum((_amount(a) for a in assets), Decimal("0")),
    }


def audit_view(assets, criteria: FilterCriteria) -> dict:
    """Filtered assets and options with Assigned assets left out entirely."""
    pool = [a for a in assets if _raw(a, "status") != constants.STATUS_ASSIGNED]
    return {
        "assets": filter_assets(pool, criteria),
        "options": all_options(pool, criteria),
    }

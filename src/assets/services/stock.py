"""Stock levels derived from the order ledger."""

from collections import defaultdict

from django.db.models import Q, Sum

from .. import constants
from ..models import Order


def _get(order, field):
    if isinstance(order, dict):
        return order.get(field)
    return getattr(order, field, None)


def _material(order) -> str:
    material = _get(order, "material_type")
    if material:
        return material
    return constants.material_type_for(_get(order, "order_type"))


def compute_stock(orders) -> list[dict]:
    """Stock per (warehouse, asset_type, model) = inward minus outward.

    Works on Order instances or plain dicts, so ledgers can be checked
    without the database.
    """
    totals = defaultdict(lambda: {"inward": 0, "outward": 0})
    for order in orders:
        key = (
            _get(order, "warehouse") or "",
            _get(order, "asset_type") or "",
            _get(order, "model") or "",
        )
        quantity = int(_get(order, "quantity") or 0)
        if _material(order) == constants.MATERIAL_INWARD:
            totals[key]["inward"] += quantity
        else:
            totals[key]["outward"] += quantity
    return [
        {
            "warehouse": warehouse,
            "asset_type": asset_type,
            "model": model,
            "inward": counts["inward"],
            "outward": counts["outward"],
            "stock": counts["inward"] - counts["outward"],
        }
        for (warehouse, asset_type, model), counts in sorted(totals.items())
    ]


def stock_summary() -> list[dict]:
    rows = (
        Order.objects.values("warehouse", "asset_type", "model")
        .annotate(
            inward=Sum(
                "quantity",
                filter=Q(material_type=constants.MATERIAL_INWARD),
                default=0,
            ),
            outward=Sum(
                "quantity",
                filter=Q(material_type=constants.MATERIAL_OUTWARD),
                default=0,
            ),
        )
        .order_by("warehouse", "asset_type", "model")
    )
    return [{**row, "stock": row["inward"] - row["outward"]} for row in rows]


def employee_summary() -> list[dict]:
    """Per employee and model: units dispatched to them, received back,
    and still pending return."""
    rows = (
        Order.objects.exclude(employee_id="")
        .values("employee_id", "employee_name", "asset_type", "model")
        .annotate(
            dispatched=Sum(
                "quantity",
                filter=Q(material_type=constants.MATERIAL_OUTWARD),
                default=0,
            ),
            received=Sum(
                "quantity",
                filter=Q(material_type=constants.MATERIAL_INWARD),
                default=0,
            ),
        )
        .order_by("employee_id", "asset_type", "model")
    )
    return [
        {**row, "pending": row["dispatched"] - row["received"]} for row in rows
    ]

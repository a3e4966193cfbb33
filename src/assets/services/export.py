"""CSV and Excel exports and downloadable templates."""

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, PatternFill

from django.conf import settings
from django.utils import timezone

from .. import constants
from .filters import dashboard_aggregates, warranty_status

# Asset export and import template; [*] marks required columns
ASSET_COLUMNS = [
    ("Asset ID[*]", "asset_id"),
    ("Asset Name[*]", "name"),
    ("Asset Type[*]", "type"),
    ("Brand[*]", "brand"),
    ("Configuration", "configuration"),
    ("Serial Number[*]", "serial_number"),
    ("Provider", "provider"),
    ("Warranty Start", "warranty_start"),
    ("Warranty End", "warranty_end"),
    ("Location[*]", "location"),
    ("Employee ID", "employee_id"),
    ("Employee Name", "assigned_to"),
]

TEMPLATE_EXAMPLES = [
    ["AST-001", 'MacBook Pro 16"', "Laptop", "Apple", "16GB RAM, 512GB SSD",
     "MBP16-2023-001", "Amazon@Tech", "2023-01-01", "2025-01-01",
     "Mumbai Office", "EMP001", "John Doe"],
    ["AST-002", "ThinkPad X1", "Laptop", "Lenovo", "8GB RAM, 256GB SSD",
     "TPX1-2023-002", "Dell~Direct", "", "", "Hyderabad WH", "", ""],
    ["AST-003", "iPad Pro", "Tablet", "Apple", "8GB RAM, 256GB SSD",
     "IPAD-2023-003", "Best&Buy", "", "", "Bangalore Office", "EMP002",
     "Jane Smith"],
]

# Dashboard download: raw field names, every text value quoted
FULL_EXPORT_FIELDS = [
    "asset_id", "name", "type", "brand", "configuration", "serial_number",
    "far_code", "status", "location", "assigned_to", "employee_id",
    "assigned_date", "received_by", "return_date", "remarks", "created_by",
    "created_at", "updated_by", "updated_at", "warranty_start",
    "warranty_end", "asset_check", "provider", "warranty_status",
    "asset_value_recovery", "asset_condition",
]

ORDER_TEMPLATE_HEADERS = [
    "Sales Order", "Employee ID", "Employee Name", "Order Type",
    "Asset Type", "Model", "Configuration", "Product", "SD Card Size",
    "Profile ID", "Location", "Quantity", "Serial Number", "Asset Status",
    "Asset Group",
]

ORDER_TEMPLATE_EXAMPLE = [
    "SO-1-abcde", "EMP001", "John Doe", "Hardware", "Tablet",
    "Lenovo TB301XU", "4G+64 GB (Android-13)", "Lead", "128 GB",
    "Profile 1", "Trichy WH", "3", "SN001", "", "",
]

EMPLOYEE_HEADERS = ["employee_id", "employee_name", "email", "role", "department"]

UTF8_BOM = "\ufeff"


def _get(asset, field):
    if isinstance(asset, dict):
        return asset.get(field)
    return getattr(asset, field, None)


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _write(rows, quoting=csv.QUOTE_MINIMAL, bom=False) -> str:
    buffer = io.StringIO()
    if bom:
        buffer.write(UTF8_BOM)
    writer = csv.writer(buffer, quoting=quoting, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def export_assets_csv(assets) -> str:
    """Assets in the template column order, RFC 4180 quoting."""
    rows = [[header for header, _ in ASSET_COLUMNS]]
    for asset in assets:
        rows.append([_text(_get(asset, field)) for _, field in ASSET_COLUMNS])
    return _write(rows)


def asset_template_csv(with_examples=False) -> str:
    rows = [[header for header, _ in ASSET_COLUMNS]]
    if with_examples:
        rows.extend(TEMPLATE_EXAMPLES)
    return _write(rows)


def _full_value(asset, field):
    if field == "asset_value_recovery":
        amount = _get(asset, "recovery_amount")
        return float(amount) if amount is not None else ""
    if field == "warranty_status":
        return warranty_status(asset)
    return _text(_get(asset, field))


def export_assets_full_csv(assets) -> str:
    """Every stored column; text quoted, recovery amounts bare numbers."""
    buffer = io.StringIO()
    buffer.write(",".join(FULL_EXPORT_FIELDS) + "\n")
    writer = csv.writer(
        buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n"
    )
    for asset in assets:
        writer.writerow([_full_value(asset, f) for f in FULL_EXPORT_FIELDS])
    return buffer.getvalue()


def order_template_csv() -> str:
    """Bulk order upload template, BOM-prefixed for Excel."""
    return _write([ORDER_TEMPLATE_HEADERS, ORDER_TEMPLATE_EXAMPLE], bom=True)


def employee_template_csv() -> str:
    return _write(
        [
            EMPLOYEE_HEADERS,
            ["EMP001", "John Doe", "john.doe@example.com", "Engineer", "IT"],
        ]
    )


def export_employees_csv(employees) -> str:
    rows = [EMPLOYEE_HEADERS]
    for employee in employees:
        rows.append([_text(_get(employee, f)) for f in EMPLOYEE_HEADERS])
    return _write(rows)


def export_assets_xlsx(assets) -> BytesIO:
    """Export assets to an Excel workbook with a summary sheet.

    Returns a BytesIO containing the .xlsx file.
    """
    assets = list(assets)
    wb = openpyxl.Workbook()

    ws_summary = wb.active
    ws_summary.title = "Summary"
    header_font = Font(bold=True)
    header_fill = PatternFill(
        start_color="2563EB", end_color="2563EB", fill_type="solid"
    )

    aggregates = dashboard_aggregates(assets)
    ws_summary.append([f"{settings.SITE_NAME} Asset Export"])
    ws_summary["A1"].font = Font(bold=True, size=14)
    ws_summary.append([])
    ws_summary.append(["Total Inventory", aggregates["total"]])
    ws_summary.append(["Allocated", aggregates["allocated"]])
    ws_summary.append(["Current Stock", aggregates["stock"]])
    ws_summary.append(["Scrap/Damage", aggregates["scrap"]])
    ws_summary.append(["Sold", aggregates["sold"]])
    ws_summary.append([])
    ws_summary.append(
        ["Recovery from Sold Assets", float(aggregates["sold_recovery"])]
    )
    ws_summary.append([])
    ws_summary.append(["Status", "Count"])
    for status, count in aggregates["by_status"].items():
        ws_summary.append([status, count])

    ws_assets = wb.create_sheet("Assets")
    headers = [header.replace("[*]", "") for header, _ in ASSET_COLUMNS] + [
        "FAR Code",
        "Status",
        "Warranty Status",
        "Asset Condition",
        "Recovery Amount",
    ]
    ws_assets.append(headers)
    for col_idx, _header in enumerate(headers, 1):
        cell = ws_assets.cell(row=1, column=col_idx)
        cell.font = header_font
        cell.fill = header_fill

    for asset in assets:
        amount = _get(asset, "recovery_amount")
        ws_assets.append(
            [_text(_get(asset, field)) for _, field in ASSET_COLUMNS]
            + [
                _text(_get(asset, "far_code")),
                _text(_get(asset, "status")),
                warranty_status(asset),
                _text(_get(asset, "asset_condition"))
                or constants.ASSET_CONDITION_UNKNOWN,
                float(amount) if isinstance(amount, Decimal) else (amount or ""),
            ]
        )

    for ws in [ws_summary, ws_assets]:
        for column_cells in ws.columns:
            max_length = max(
                len(str(cell.value or "")) for cell in column_cells
            )
            ws.column_dimensions[column_cells[0].column_letter].width = min(
                max_length + 2, 50
            )

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer

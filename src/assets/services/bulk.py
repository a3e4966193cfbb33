"""Bulk asset import from CSV or Excel uploads."""

import csv
import dataclasses
import io
import logging
import re
from datetime import date, datetime

import openpyxl

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.db.models import Q
from django.utils import timezone

from .. import constants
from ..models import Asset
from . import permissions
from .history import actor_name, record_changes, record_edit, snapshot
from .validation import validate_asset_uniqueness

logger = logging.getLogger(__name__)

# Normalised header -> Asset field
FIELD_MAP = {
    "asset id": "asset_id",
    "asset name": "name",
    "asset type": "type",
    "brand": "brand",
    "configuration": "configuration",
    "serial number": "serial_number",
    "far code": "far_code",
    "provider": "provider",
    "warranty start": "warranty_start",
    "warranty end": "warranty_end",
    "location": "location",
    "employee id": "employee_id",
    "employee name": "assigned_to",
    "asset value recovery": "recovery_amount",
}

REQUIRED_COLUMNS = [
    ("asset_id", "Asset ID"),
    ("name", "Asset Name"),
    ("type", "Asset Type"),
    ("brand", "Brand"),
    ("serial_number", "Serial Number"),
    ("location", "Location"),
]

DATE_FIELDS = {"warranty_start": "Warranty Start", "warranty_end": "Warranty End"}

MONTHS = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6, "jul": 7,
    "july": 7, "aug": 8, "august": 8, "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10, "nov": 11, "november": 11, "dec": 12,
    "december": 12,
}

# (pattern, group order as year/month/day, two-digit year)
DATE_FORMATS = [
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), (1, 2, 3), False),
    (re.compile(r"^(\d{2})[-/](\d{2})[-/](\d{4})$"), (3, 2, 1), False),
    (re.compile(r"^(\d{2})[-/](\d{2})[-/](\d{2})$"), (3, 2, 1), True),
    (re.compile(r"^(\d{1,2})[-/]([a-z]+)[-/](\d{4})$"), (3, 2, 1), False),
    (re.compile(r"^(\d{1,2})\s+([a-z]+)\s+(\d{4})$"), (3, 2, 1), False),
    (re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$"), (1, 2, 3), False),
]


def parse_date(value) -> date | None:
    """Parse the date spellings found in spreadsheets exported by hand.

    Accepts YYYY-MM-DD, DD-MM-YYYY, DD/MM/YYYY, DD-MM-YY (years below 50
    are 20xx), DD-MMM-YYYY, "DD Month YYYY" and YYYY/M/D. Blank input
    returns None; anything else raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    for pattern, order, short_year in DATE_FORMATS:
        match = pattern.match(text)
        if not match:
            continue
        year_s, month_s, day_s = (match.group(i) for i in order)
        year = int(year_s)
        month = MONTHS.get(month_s) or (int(month_s) if month_s.isdigit() else 0)
        day = int(day_s)
        if short_year and year < 100:
            year += 2000 if year < 50 else 1900
        return date(year, month, day)
    raise ValueError(f"Unsupported date format: {value}")


def normalise_header(header) -> str:
    text = str(header or "").replace("\ufeff", "")
    return text.replace("[*]", "").replace("*", "").strip().lower()


@dataclasses.dataclass
class RowError:
    row_number: int
    message: str
    row: list


@dataclasses.dataclass
class ImportReport:
    created: int = 0
    updated: int = 0
    errors: list = dataclasses.field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)

    def as_dict(self) -> dict:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": [
                {"row": e.row_number, "error": e.message} for e in self.errors
            ],
        }


def map_headers(headers) -> dict:
    """Map column index to Asset field; rejects files missing key columns."""
    columns = {}
    for index, header in enumerate(headers):
        field = FIELD_MAP.get(normalise_header(header))
        if field and field not in columns.values():
            columns[index] = field
    present = set(columns.values())
    missing = [label for field, label in REQUIRED_COLUMNS if field not in present]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")
    return columns


def row_to_record(columns: dict, row) -> dict:
    record = {}
    for index, field in columns.items():
        value = row[index] if index < len(row) else None
        record[field] = "" if value is None else str(value).strip()
    return record


def build_asset_fields(record: dict) -> dict:
    """Validate one mapped row and return the Asset field values.

    Raises ValidationError with a row-level message.
    """
    for field, label in REQUIRED_COLUMNS:
        if not record.get(field):
            raise ValidationError(f"Missing or empty required field: {label}")
    if not constants.is_valid_location(record["location"]):
        raise ValidationError(f"Invalid location: {record['location']}")

    fields = {
        f: record[f]
        for f in (
            "asset_id",
            "name",
            "type",
            "brand",
            "configuration",
            "serial_number",
            "far_code",
            "provider",
            "location",
        )
        if record.get(f)
    }
    for field, label in DATE_FIELDS.items():
        try:
            fields[field] = parse_date(record.get(field))
        except ValueError:
            raise ValidationError(f"Invalid date for {label}: {record[field]}")

    if record.get("employee_id") and record.get("assigned_to"):
        fields["status"] = constants.STATUS_ASSIGNED
        fields["employee_id"] = record["employee_id"]
        fields["assigned_to"] = record["assigned_to"]
        fields["assigned_date"] = timezone.now()
    else:
        fields["status"] = constants.STATUS_AVAILABLE
    fields["recovery_amount"] = None
    return fields


def _import_row(fields: dict, user, update_existing: bool) -> str:
    """Create (or update) one asset. Returns "created" or "updated"."""
    actor = actor_name(user)
    conflicts = Asset.objects.filter(
        Q(asset_id=fields["asset_id"]) | Q(serial_number=fields["serial_number"])
    )
    if update_existing:
        existing = conflicts.filter(
            asset_id=fields["asset_id"], serial_number=fields["serial_number"]
        ).first()
        if existing is not None:
            before = snapshot(existing, list(fields))
            for field, value in fields.items():
                if field == "assigned_date" and existing.assigned_date:
                    continue
                # a row without an employee keeps the current assignment
                if (
                    field == "status"
                    and value == constants.STATUS_AVAILABLE
                    and existing.assigned_to
                ):
                    continue
                setattr(existing, field, value)
            existing.updated_by = actor
            existing.updated_at = timezone.now()
            existing.full_clean(validate_unique=False)
            existing.save()
            record_changes(existing, before, user)
            return "updated"

    message = validate_asset_uniqueness(
        fields["asset_id"], fields["serial_number"], conflicts
    )
    if message:
        raise ValidationError(message)
    asset = Asset(**fields, created_by=actor, updated_by=actor)
    asset.full_clean(validate_unique=False)
    asset.save()
    record_edit(asset, "created", None, "Asset Created", user)
    return "created"


def import_assets(headers, rows, user, update_existing=False) -> ImportReport:
    """Import rows; bad rows are reported and never block good ones.

    Row numbers in the report count the header as row 1.
    """
    permissions.require(
        permissions.can_write_assets, user, "You cannot import assets."
    )
    columns = map_headers(headers)
    report = ImportReport()
    for index, row in enumerate(rows):
        row_number = index + 2
        try:
            fields = build_asset_fields(row_to_record(columns, row))
            with db_transaction.atomic():
                outcome = _import_row(fields, user, update_existing)
        except ValidationError as exc:
            message = "; ".join(exc.messages)
            logger.warning("Row %d skipped: %s", row_number, message)
            report.errors.append(RowError(row_number, message, list(row)))
            continue
        if outcome == "created":
            report.created += 1
        else:
            report.updated += 1

    logger.info(
        "Bulk import by %s: %d created, %d updated, %d skipped",
        actor_name(user),
        report.created,
        report.updated,
        report.skipped,
    )
    return report


def skipped_rows_csv(report: ImportReport, headers) -> str:
    """Downloadable CSV of the rejected rows with an Error column."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(list(headers) + ["Error"])
    for error in report.errors:
        values = ["" if v is None else str(v) for v in error.row]
        values += [""] * (len(headers) - len(values))
        writer.writerow(values + [error.message])
    return buffer.getvalue()


def _cell_text(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def read_upload(upload) -> tuple[list, list]:
    """Read an uploaded .csv or .xlsx file into (headers, rows).

    Completely blank rows are dropped.
    """
    name = (getattr(upload, "name", "") or "").lower()
    if name.endswith(".xlsx"):
        try:
            wb = openpyxl.load_workbook(upload, read_only=True, data_only=True)
        except Exception as exc:
            raise ValidationError(f"Could not read Excel file: {exc}")
        ws = wb.active
        table = [[_cell_text(v) for v in row] for row in ws.iter_rows(values_only=True)]
        wb.close()
    elif name.endswith(".csv"):
        raw = upload.read()
        try:
            text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
        except UnicodeDecodeError:
            raise ValidationError("CSV files must be UTF-8 encoded.")
        table = list(csv.reader(io.StringIO(text)))
    else:
        raise ValidationError("Unsupported file type. Upload a .csv or .xlsx file.")

    table = [row for row in table if any(str(c).strip() for c in row)]
    if not table:
        raise ValidationError("The uploaded file is empty.")
    headers = [str(h).replace("\ufeff", "").strip() for h in table[0]]
    return headers, table[1:]

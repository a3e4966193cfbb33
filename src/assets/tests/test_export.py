"""Tests for CSV and Excel exports."""

import csv
import io
from datetime import date
from decimal import Decimal

import openpyxl

from assets.factories import AssetFactory, EmployeeFactory
from assets.models import Asset, Employee
from assets.services import export


def _parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestAssetCsv:
    def test_template_headers_mark_required_columns(self):
        rows = _parse(export.asset_template_csv())
        assert rows == [[h for h, _ in export.ASSET_COLUMNS]]
        assert rows[0][0] == "Asset ID[*]"
        assert rows[0][6] == "Provider"

    def test_template_examples_quote_special_characters(self):
        text = export.asset_template_csv(with_examples=True)
        rows = _parse(text)
        assert len(rows) == 4
        assert rows[1][1] == 'MacBook Pro 16"'
        assert '"MacBook Pro 16"""' in text
        assert rows[3][6] == "Best&Buy"

    def test_export_uses_template_order(self, db):
        asset = AssetFactory(
            asset_id="AST-9",
            name="Dell, Latitude",
            warranty_end=date(2030, 1, 31),
        )
        rows = _parse(export.export_assets_csv([asset]))
        record = dict(zip(rows[0], rows[1]))
        assert record["Asset ID[*]"] == "AST-9"
        assert record["Asset Name[*]"] == "Dell, Latitude"
        assert record["Warranty End"] == "2030-01-31"
        assert record["Employee Name"] == ""


class TestFullCsv:
    def test_header_and_numeric_recovery(self):
        record = {
            "asset_id": "A1",
            "status": "Sold",
            "recovery_amount": Decimal("150.50"),
            "warranty_end": None,
        }
        text = export.export_assets_full_csv([record])
        header, row = text.splitlines()
        assert header.split(",") == export.FULL_EXPORT_FIELDS
        assert row.startswith('"A1",')
        assert ",150.5," in row
        values = next(csv.reader([row]))
        assert values[export.FULL_EXPORT_FIELDS.index("warranty_status")] == (
            "Out of Warranty"
        )

    def test_warranty_end_as_text(self):
        record = {"asset_id": "X", "warranty_end": "2099-01-01"}
        _header, row = export.export_assets_full_csv([record]).splitlines()
        values = next(csv.reader([row]))
        assert values[export.FULL_EXPORT_FIELDS.index("warranty_status")] == (
            "In Warranty"
        )


class TestTemplates:
    def test_order_template_has_bom(self):
        text = export.order_template_csv()
        assert text.startswith("\ufeff")
        rows = _parse(text[1:])
        assert rows[0] == export.ORDER_TEMPLATE_HEADERS
        assert rows[1][10] == "Trichy WH"

    def test_employee_csv(self, db):
        EmployeeFactory(employee_id="EMP010", employee_name="Asha Rao")
        rows = _parse(export.export_employees_csv(Employee.objects.all()))
        assert rows[0] == export.EMPLOYEE_HEADERS
        assert rows[1][:2] == ["EMP010", "Asha Rao"]


class TestXlsx:
    def test_workbook_sheets(self, db):
        AssetFactory(status="Sold", recovery_amount=Decimal("500"))
        AssetFactory(asset_condition="")
        buffer = export.export_assets_xlsx(Asset.objects.all())
        wb = openpyxl.load_workbook(buffer)
        assert wb.sheetnames == ["Summary", "Assets"]

        summary = {
            row[0]: row[1]
            for row in wb["Summary"].iter_rows(values_only=True)
            if row[0]
        }
        assert summary["Total Inventory"] == 1
        assert summary["Sold"] == 1
        assert summary["Recovery from Sold Assets"] == 500

        rows = list(wb["Assets"].iter_rows(values_only=True))
        assert rows[0][0] == "Asset ID"
        assert len(rows) == 3
        conditions = {row[-2] for row in rows[1:]}
        assert conditions == {"Unknown"}

    def test_dict_rows_with_text_dates(self):
        record = {
            "asset_id": "X",
            "status": "Available",
            "warranty_end": "2099-01-01",
        }
        wb = openpyxl.load_workbook(export.export_assets_xlsx([record]))
        rows = list(wb["Assets"].iter_rows(values_only=True))
        assert "In Warranty" in rows[1]

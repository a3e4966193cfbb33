"""Tests for order entry, serial checks and the order ledger."""

import re

import pytest

from django.core.exceptions import PermissionDenied, ValidationError

from assets.factories import DeviceFactory, UserFactory
from assets.models import Device, Order, OrderHistory
from assets.services import orders
from assets.services.orders import OrderLine


def _tablet(*serials, location="Hyderabad WH", **values):
    return OrderLine.create(
        "Tablet",
        quantity=len(serials) or 1,
        location=location,
        model="Lenovo TB301XU",
        serial_numbers=list(serials),
        **values,
    )


class TestOrderLine:
    def test_tablet_tracks_serials(self):
        line = OrderLine.create("Tablet", quantity=3, model="TB301")
        assert line.has_serials
        assert line.serial_numbers == ("", "", "")
        assert line.asset_statuses == ("Fresh", "Fresh", "Fresh")
        assert line.asset_groups == ("FA", "FA", "FA")

    def test_mandatory_serials_cannot_be_disabled(self):
        line = OrderLine.create("TV", model="Sony", has_serials=False)
        assert line.has_serials
        with pytest.raises(ValidationError, match="mandatory for TV"):
            line.set_serial_tracking(False)

    def test_optional_serials_default_off(self):
        line = OrderLine.create("Cover", quantity=2, model="Flip")
        assert not line.has_serials
        assert line.serial_numbers == ()
        assert OrderLine.create("Pendrive", model="32GB").has_serials

    def test_sd_card_size_follows_model(self):
        line = OrderLine.create("SD Card", model="128 GB")
        assert line.sd_card_size == "128 GB"

    def test_unknown_asset_type(self):
        with pytest.raises(ValidationError, match="Unknown asset type"):
            OrderLine.create("Fridge")

    def test_resize_with_serials_keeps_units(self):
        line = _tablet("S1", "S2").with_unit(1, asset_status="Refurb")
        grown = line.resize(3)
        assert grown.serial_numbers == ("S1", "S2", "")
        assert grown.asset_statuses == ("Fresh", "Refurb", "Fresh")
        shrunk = grown.resize(1)
        assert shrunk.serial_numbers == ("S1",)
        assert shrunk.far_codes == ("",)

    def test_resize_without_serials_is_uniform(self):
        line = OrderLine.create(
            "Cover", quantity=2, model="Flip", asset_statuses=["Refurb", "Fresh"]
        )
        assert line.resize(4).asset_statuses == ("Refurb",) * 4

    def test_disable_tracking_unifies_units(self):
        line = OrderLine.create(
            "Pendrive",
            quantity=2,
            model="32GB",
            serial_numbers=["P1", "P2"],
            asset_groups=["NFA", "FA"],
        )
        off = line.set_serial_tracking(False)
        assert off.serial_numbers == ()
        assert off.asset_groups == ("NFA", "NFA")
        on = off.set_serial_tracking(True)
        assert on.serial_numbers == ("", "")

    def test_with_unit_requires_tracking(self):
        line = OrderLine.create("Cover", model="Flip")
        with pytest.raises(ValidationError):
            line.with_unit(0, serial_number="X")
        with pytest.raises(IndexError):
            line.with_unit(5, asset_status="Scrap")

    def test_lists_must_match_quantity(self):
        with pytest.raises(ValueError):
            OrderLine(asset_type="Cover", quantity=2, asset_statuses=("Fresh",))

    def test_from_dict(self):
        line = OrderLine.from_dict(
            {
                "asset_type": "Tablet",
                "quantity": "2",
                "location": " Hyderabad WH ",
                "model": "TB301",
                "serial_numbers": [" A1 ", "A2"],
                "ignored": "x",
            }
        )
        assert line.location == "Hyderabad WH"
        assert line.entered_serials == ["A1", "A2"]

    def test_from_dict_invalid_quantity(self):
        with pytest.raises(ValidationError, match="Invalid quantity"):
            OrderLine.from_dict({"asset_type": "Tablet", "quantity": "many"})


def test_sales_order_format():
    assert re.fullmatch(r"\d{4}[A-Z]{2}\d{2}", orders.generate_sales_order())


@pytest.mark.django_db
class TestSerialChecks:
    def test_inward_at_other_warehouse(self):
        DeviceFactory(serial_number="S1", warehouse="Kolkata WH")
        errors = orders.validate_order_serials("Stock", [_tablet("S1", "S2")])
        assert errors == {0: ["Currently Inward in Kolkata WH", None]}

    def test_inward_after_outward_is_allowed(self):
        DeviceFactory(
            serial_number="S1", warehouse="Kolkata WH", material_type="Outward"
        )
        assert orders.validate_order_serials("Return", [_tablet("S1")]) == {0: [None]}

    def test_outward_requires_stock_at_warehouse(self):
        DeviceFactory(serial_number="S1")
        DeviceFactory(serial_number="S2", warehouse="Kolkata WH")
        DeviceFactory(serial_number="S3", material_type="Outward")
        errors = orders.validate_order_serials(
            "Hardware", [_tablet("S1", "S2", "S3", "S4")]
        )
        assert errors == {
            0: [
                None,
                "Currently Inward in Kolkata WH",
                "Not in stock",
                "Not in stock",
            ]
        }

    def test_latest_device_row_wins(self):
        DeviceFactory(serial_number="S1")
        DeviceFactory(serial_number="S1", material_type="Outward")
        errors = orders.validate_order_serials("Hardware", [_tablet("S1")])
        assert errors == {0: ["Not in stock"]}

    def test_deleted_devices_are_ignored(self):
        DeviceFactory(serial_number="S1", warehouse="Kolkata WH", is_deleted=True)
        assert orders.validate_order_serials("Stock", [_tablet("S1")]) == {0: [None]}

    def test_duplicates_across_lines(self):
        lines = [_tablet("S1", ""), _tablet("S1", location="Kolkata WH")]
        errors = orders.validate_order_serials("Stock", lines)
        assert errors == {
            0: ["Duplicate within order", None],
            1: ["Duplicate within order"],
        }

    def test_lines_without_serials_are_skipped(self):
        line = OrderLine.create("Cover", model="Flip", location="Hyderabad WH")
        assert orders.validate_order_serials("Hardware", [line]) == {}


@pytest.mark.django_db
class TestValidateOrder:
    @pytest.mark.parametrize(
        "args,message",
        [
            (("", "EMP1", "Jane"), "Please select an order type"),
            (("Stock", " ", "Jane"), "Employee ID is required"),
            (("Stock", "EMP1", ""), "Employee Name is required"),
        ],
    )
    def test_header_checks(self, args, message):
        with pytest.raises(ValidationError, match=message):
            orders.validate_order(*args, [_tablet("S1")])

    def test_needs_a_line(self):
        with pytest.raises(ValidationError, match="at least one asset"):
            orders.validate_order("Stock", "EMP1", "Jane", [])

    def test_location_checks(self):
        with pytest.raises(ValidationError, match="Location is required for Tablet"):
            orders.validate_order("Stock", "EMP1", "Jane", [_tablet("S1", location="")])
        with pytest.raises(ValidationError, match="Invalid location: Moon"):
            orders.validate_order(
                "Stock", "EMP1", "Jane", [_tablet("S1", location="Moon")]
            )

    def test_model_required(self):
        line = OrderLine.create("Cover", location="Hyderabad WH")
        with pytest.raises(ValidationError, match="Model is required for Cover"):
            orders.validate_order("Stock", "EMP1", "Jane", [line])

    def test_scrapped_inward_unit_needs_condition(self):
        line = _tablet("S1", "S2").with_unit(1, asset_status="Scrap")
        with pytest.raises(ValidationError, match="Tablet at position 2"):
            orders.validate_order("Return", "EMP1", "Jane", [line])
        ok = line.with_unit(1, asset_condition="Screen cracked")
        orders.validate_order("Return", "EMP1", "Jane", [ok])

    @pytest.mark.parametrize(
        "values,message",
        [
            ({"asset_statuses": ["Garbage"]}, "Invalid asset status for Cover: Garbage"),
            ({"asset_statuses": ["scrap"]}, "Invalid asset status for Cover: scrap"),
            ({"asset_groups": ["XYZ"]}, "Invalid asset group for Cover: XYZ"),
            ({"product": "Retail"}, "Invalid product for Cover: Retail"),
        ],
    )
    def test_unit_values_must_be_known(self, values, message, admin_user):
        line = OrderLine.create(
            "Cover", model="Flip", location="Hyderabad WH", **values
        )
        with pytest.raises(ValidationError, match=message):
            orders.create_order("Return", "EMP1", "Jane", [line], admin_user)
        assert not Device.objects.exists()

    def test_unit_values_from_json_line(self):
        line = OrderLine.from_dict(
            {
                "asset_type": "Cover",
                "model": "Flip",
                "location": "Hyderabad WH",
                "asset_groups": ["Loaned"],
            }
        )
        with pytest.raises(ValidationError, match="Invalid asset group"):
            orders.validate_order("Stock", "EMP1", "Jane", [line])

    def test_serial_errors_are_reported(self):
        DeviceFactory(serial_number="S1", warehouse="Kolkata WH")
        with pytest.raises(ValidationError) as exc:
            orders.validate_order("Stock", "EMP1", "Jane", [_tablet("S1")])
        assert exc.value.messages == [
            "Tablet serial S1: Currently Inward in Kolkata WH"
        ]


class TestCreateOrder:
    def test_one_sales_order_per_submission(self, admin_user):
        lines = [
            _tablet("T1", "T2"),
            OrderLine.create(
                "Cover", quantity=3, model="Flip", location="Hyderabad WH"
            ),
        ]
        created = orders.create_order("Stock", "EMP001", "Jane Smith", lines, admin_user)
        assert len(created) == 2
        assert len({o.sales_order for o in created}) == 1
        tablet = created[0]
        assert tablet.material_type == "Inward"
        assert tablet.serial_numbers == ["T1", "T2"]
        assert tablet.product == "Lead"
        assert tablet.created_by == admin_user.email

        devices = Device.objects.filter(order=tablet)
        assert sorted(d.serial_number for d in devices) == ["T1", "T2"]
        assert {d.status for d in devices} == {"Available"}
        assert Device.objects.filter(order=created[1], serial_number="").count() == 3
        assert OrderHistory.objects.filter(operation="INSERT").count() == 2

    def test_outward_devices_are_assigned(self, admin_user):
        DeviceFactory(serial_number="T1")
        (order,) = orders.create_order(
            "Hardware", "EMP001", "Jane Smith", [_tablet("T1")], admin_user
        )
        device = order.devices.get()
        assert device.material_type == "Outward"
        assert device.status == "Assigned"
        assert orders.validate_order_serials("Hardware", [_tablet("T1")]) == {
            0: ["Not in stock"]
        }

    def test_invalid_submission_writes_nothing(self, admin_user):
        with pytest.raises(ValidationError):
            orders.create_order("Hardware", "EMP001", "Jane", [_tablet("X9")], admin_user)
        assert not Order.objects.exists()
        assert not Device.objects.exists()

    def test_reporter_cannot_create(self, reporter):
        with pytest.raises(PermissionDenied):
            orders.create_order("Stock", "EMP001", "Jane", [_tablet("T1")], reporter)


class TestOrderLedger:
    @pytest.fixture
    def order(self, admin_user):
        (order,) = orders.create_order(
            "Stock", "EMP001", "Jane Smith", [_tablet("T1")], admin_user
        )
        return order

    def test_update_logs_each_changed_field(self, order, admin_user):
        orders.update_order(
            order,
            {"quantity": "2", "warehouse": "Kolkata WH", "employee_name": "Jane Smith"},
            admin_user,
        )
        order.refresh_from_db()
        assert order.quantity == 2
        assert order.warehouse == "Kolkata WH"
        updates = OrderHistory.objects.filter(operation="UPDATE")
        assert sorted(updates.values_list("field_name", flat=True)) == [
            "quantity",
            "warehouse",
        ]

    def test_update_validation(self, order, admin_user):
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            orders.update_order(order, {"quantity": 0}, admin_user)
        with pytest.raises(ValidationError, match="cannot be edited"):
            orders.update_order(order, {"order_type": "Demo"}, admin_user)
        with pytest.raises(ValidationError, match="Employee id is required"):
            orders.update_order(order, {"employee_id": ""}, admin_user)

    def test_only_creator_may_edit_or_delete(self, order, db):
        other = UserFactory()
        with pytest.raises(PermissionDenied, match="edit orders you created"):
            orders.update_order(order, {"model": "X"}, other)
        with pytest.raises(PermissionDenied, match="delete orders you created"):
            orders.delete_order(order, other)

    def test_delete_retires_devices(self, order, admin_user):
        orders.delete_order(order, admin_user)
        assert not Order.objects.exists()
        assert Device.objects.get(serial_number="T1").is_deleted
        assert OrderHistory.objects.filter(operation="DELETE").count() == 1
        assert orders.validate_order_serials("Stock", [_tablet("T1")]) == {0: [None]}

    def test_orders_for(self, order, admin_user, db):
        other = UserFactory()
        assert list(orders.orders_for(other)) == [order]
        assert list(orders.orders_for(other, mine_only=True)) == []
        assert list(orders.orders_for(admin_user, mine_only=True)) == [order]


class TestImportOrders:
    HEADERS = [
        "Sales Order", "Employee ID", "Employee Name", "Order Type",
        "Asset Type", "Model", "Location", "Quantity", "Serial Number",
        "Asset Status",
    ]

    def test_rows_grouped_by_sales_order(self, admin_user):
        rows = [
            ["SO-1", "EMP001", "Jane", "Stock", "Tablet", "TB301", "Hyderabad WH", "2", "A1", ""],
            ["SO-1", "EMP001", "Jane", "Stock", "Tablet", "TB301", "Hyderabad WH", "", "A2", "Refurb"],
            ["SO-1", "EMP001", "Jane", "Stock", "Cover", "Flip", "Hyderabad WH", "5", "", ""],
            ["", "EMP002", "Ravi", "Stock", "Cover", "Flip", "Kolkata WH", "1", "", ""],
        ]
        report = orders.import_orders(self.HEADERS, rows, admin_user)
        assert report.created == 3
        assert report.errors == []

        tablet = Order.objects.get(sales_order="SO-1", asset_type="Tablet")
        assert tablet.quantity == 2
        assert tablet.serial_numbers == ["A1", "A2"]
        assert Device.objects.get(serial_number="A2").asset_status == "Refurb"
        assert Order.objects.get(sales_order="SO-1", asset_type="Cover").quantity == 5
        assert Order.objects.exclude(sales_order="SO-1").get().employee_id == "EMP002"

    def test_failed_group_reported_per_row(self, admin_user):
        rows = [
            ["SO-2", "EMP001", "Jane", "Stock", "Tablet", "TB301", "Atlantis", "1", "B1", ""],
            ["SO-2", "EMP001", "Jane", "Stock", "Cover", "Flip", "Atlantis", "1", "", ""],
            ["SO-3", "EMP001", "Jane", "Stock", "Cover", "Flip", "Hyderabad WH", "1", "", ""],
        ]
        report = orders.import_orders(self.HEADERS, rows, admin_user)
        assert report.created == 1
        assert [(e.row_number, e.message) for e in report.errors] == [
            (2, "Invalid location: Atlantis"),
            (3, "Invalid location: Atlantis"),
        ]

    def test_missing_columns(self, admin_user):
        with pytest.raises(ValidationError, match="Location"):
            orders.import_orders(self.HEADERS[:6], [], admin_user)

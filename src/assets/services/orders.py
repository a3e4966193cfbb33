"""Order entry: per-type line schemas, serial checks and the order ledger."""

import dataclasses
import logging
import random
import string

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from .. import constants
from ..models import Device, Order, OrderHistory
from . import permissions
from .bulk import ImportReport, RowError, normalise_header
from .history import actor_name

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class AssetTypeSchema:
    required: tuple
    optional: tuple
    serials_mandatory: bool = False
    serials_default: bool = False

    @property
    def fields(self) -> tuple:
        return self.required + self.optional


ASSET_TYPE_SCHEMAS = {
    "Tablet": AssetTypeSchema(
        required=("model",),
        optional=("configuration", "product", "sd_card_size", "profile_id"),
        serials_mandatory=True,
        serials_default=True,
    ),
    "TV": AssetTypeSchema(
        required=("model",),
        optional=("configuration", "product"),
        serials_mandatory=True,
        serials_default=True,
    ),
    "SD Card": AssetTypeSchema(
        required=("model",), optional=("profile_id", "product")
    ),
    "Cover": AssetTypeSchema(required=("model",), optional=("product",)),
    "Pendrive": AssetTypeSchema(
        required=("model",), optional=("product",), serials_default=True
    ),
    "Other": AssetTypeSchema(required=("model",), optional=("product",)),
}

# Per-unit lists and the value a new unit starts with
UNIT_FIELDS = {
    "asset_statuses": constants.DEFAULT_UNIT_STATUS,
    "asset_groups": constants.DEFAULT_UNIT_GROUP,
    "asset_conditions": "",
    "far_codes": "",
}

# Fields the creator may change after an order is saved
ORDER_EDITABLE_FIELDS = [
    "sales_order",
    "quantity",
    "employee_name",
    "employee_id",
    "warehouse",
    "model",
    "serial_numbers",
]


def schema_for(asset_type: str) -> AssetTypeSchema:
    try:
        return ASSET_TYPE_SCHEMAS[asset_type]
    except KeyError:
        raise ValidationError(f"Unknown asset type '{asset_type}'.")


def _fit(values, size: int, default) -> tuple:
    values = list(values or [])[:size]
    return tuple(values + [default] * (size - len(values)))


def _uniform(values, size: int, default) -> tuple:
    first = values[0] if values else default
    return (first,) * size


@dataclasses.dataclass(frozen=True)
class OrderLine:
    """One asset type on an order form.

    The per-unit tuples (statuses, groups, conditions, FAR codes) always
    hold exactly ``quantity`` entries; ``serial_numbers`` does too while
    serial tracking is on and is empty otherwise.
    """

    asset_type: str
    location: str = ""
    model: str = ""
    configuration: str = ""
    product: str = ""
    sd_card_size: str = ""
    profile_id: str = ""
    quantity: int = 1
    has_serials: bool = False
    serial_numbers: tuple = ()
    asset_statuses: tuple = ()
    asset_groups: tuple = ()
    asset_conditions: tuple = ()
    far_codes: tuple = ()

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")
        for field in UNIT_FIELDS:
            if len(getattr(self, field)) != self.quantity:
                raise ValueError(f"{field} must hold {self.quantity} entries")
        expected = self.quantity if self.has_serials else 0
        if len(self.serial_numbers) != expected:
            raise ValueError(f"serial_numbers must hold {expected} entries")

    @classmethod
    def create(cls, asset_type, quantity=1, has_serials=None, **values):
        """Build a line, padding or trimming per-unit lists to ``quantity``."""
        schema = schema_for(asset_type)
        quantity = max(1, int(quantity or 1))
        if has_serials is None:
            has_serials = schema.serials_default
        has_serials = bool(has_serials) or schema.serials_mandatory
        for field, default in UNIT_FIELDS.items():
            values[field] = _fit(values.get(field), quantity, default)
        values["serial_numbers"] = (
            _fit(
                [str(s or "").strip() for s in values.get("serial_numbers") or []],
                quantity,
                "",
            )
            if has_serials
            else ()
        )
        if asset_type == "SD Card":
            values["sd_card_size"] = values.get("model", "")
        return cls(
            asset_type=asset_type,
            quantity=quantity,
            has_serials=has_serials,
            **values,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "OrderLine":
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for key in ("location", "model", "configuration", "product",
                    "sd_card_size", "profile_id"):
            if key in values:
                values[key] = str(values[key] or "").strip()
        try:
            quantity = int(values.pop("quantity", 1) or 1)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid quantity '{data.get('quantity')}'.")
        return cls.create(
            values.pop("asset_type", ""),
            quantity=quantity,
            has_serials=values.pop("has_serials", None),
            **values,
        )

    def resize(self, quantity: int) -> "OrderLine":
        """Change the unit count, keeping every per-unit list in step.

        With serials, existing units keep their values and new units get
        the defaults. Without serials every unit shares the first unit's
        values.
        """
        quantity = max(1, int(quantity))
        changes = {"quantity": quantity}
        for field, default in UNIT_FIELDS.items():
            current = getattr(self, field)
            if self.has_serials:
                changes[field] = _fit(current, quantity, default)
            else:
                changes[field] = _uniform(current, quantity, default)
        if self.has_serials:
            changes["serial_numbers"] = _fit(self.serial_numbers, quantity, "")
        return dataclasses.replace(self, **changes)

    def set_serial_tracking(self, enabled: bool) -> "OrderLine":
        if enabled == self.has_serials:
            return self
        schema = schema_for(self.asset_type)
        if not enabled and schema.serials_mandatory:
            raise ValidationError(
                f"Serial numbers are mandatory for {self.asset_type}."
            )
        if enabled:
            return dataclasses.replace(
                self,
                has_serials=True,
                serial_numbers=("",) * self.quantity,
                far_codes=("",) * self.quantity,
            )
        changes = {"has_serials": False, "serial_numbers": ()}
        for field, default in UNIT_FIELDS.items():
            changes[field] = _uniform(getattr(self, field), self.quantity, default)
        return dataclasses.replace(self, **changes)

    def with_unit(self, index: int, **values) -> "OrderLine":
        """Set per-unit values (serial_number, asset_status, ...) at ``index``."""
        if not 0 <= index < self.quantity:
            raise IndexError(index)
        plural = {
            "serial_number": "serial_numbers",
            "asset_status": "asset_statuses",
            "asset_group": "asset_groups",
            "asset_condition": "asset_conditions",
            "far_code": "far_codes",
        }
        changes = {}
        for name, value in values.items():
            field = plural[name]
            if field == "serial_numbers" and not self.has_serials:
                raise ValidationError("Serial tracking is off for this line.")
            items = list(getattr(self, field))
            items[index] = value
            changes[field] = tuple(items)
        return dataclasses.replace(self, **changes)

    @property
    def entered_serials(self) -> list[str]:
        return [s.strip() for s in self.serial_numbers if s and s.strip()]


def generate_sales_order() -> str:
    """Four digits, two letters, two digits, e.g. ``4821KQ37``."""
    return (
        str(random.randint(1000, 9999))
        + "".join(random.choices(string.ascii_uppercase, k=2))
        + str(random.randint(10, 99))
    )


def latest_devices(asset_type: str, serials) -> dict:
    """Map serial -> most recently updated live Device row."""
    latest = {}
    rows = Device.objects.filter(
        asset_type=asset_type, serial_number__in=list(serials), is_deleted=False
    ).order_by("-updated_at", "-pk")
    for device in rows:
        latest.setdefault(device.serial_number, device)
    return latest


def _stock_error(inward: bool, target: str, device) -> str | None:
    if device is None:
        return None if inward else "Not in stock"
    material, warehouse = device.material_type, device.warehouse
    if inward:
        if material == constants.MATERIAL_INWARD and warehouse != target:
            return f"Currently Inward in {warehouse}"
        return None
    if warehouse != target:
        return f"Currently {material} in {warehouse}"
    if material == constants.MATERIAL_OUTWARD:
        return "Not in stock"
    return None


def validate_order_serials(order_type: str, lines) -> dict:
    """Per-line, per-unit serial errors for a submission.

    Returns ``{line_index: [error or None, ...]}`` for lines tracking
    serials. Blank serials are not checked.
    """
    inward = constants.material_type_for(order_type) == constants.MATERIAL_INWARD
    seen = {}
    for line in lines:
        for serial in line.entered_serials:
            key = (line.asset_type, serial)
            seen[key] = seen.get(key, 0) + 1

    errors = {}
    for index, line in enumerate(lines):
        if not line.has_serials:
            continue
        devices = latest_devices(line.asset_type, line.entered_serials)
        line_errors = []
        for raw in line.serial_numbers:
            serial = (raw or "").strip()
            if not serial:
                line_errors.append(None)
            elif seen[(line.asset_type, serial)] > 1:
                line_errors.append("Duplicate within order")
            else:
                line_errors.append(
                    _stock_error(inward, line.location, devices.get(serial))
                )
        errors[index] = line_errors
    return errors


def validate_order(order_type, employee_id, employee_name, lines) -> dict:
    """Check a whole submission; raises ValidationError on the first problem.

    Returns the (clean) serial error map.
    """
    if order_type not in constants.ORDER_TYPES:
        raise ValidationError("Please select an order type")
    if not (employee_id or "").strip():
        raise ValidationError("Employee ID is required")
    if not (employee_name or "").strip():
        raise ValidationError("Employee Name is required")
    if not lines:
        raise ValidationError("Please add at least one asset")

    inward = constants.material_type_for(order_type) == constants.MATERIAL_INWARD
    for line in lines:
        if line.asset_type not in constants.ORDER_ASSET_TYPES:
            raise ValidationError(f"Unknown asset type '{line.asset_type}'.")
        schema = schema_for(line.asset_type)
        if line.product and line.product not in constants.PRODUCTS:
            raise ValidationError(
                f"Invalid product for {line.asset_type}: {line.product}"
            )
        for status in line.asset_statuses:
            if status not in constants.UNIT_STATUSES:
                raise ValidationError(
                    f"Invalid asset status for {line.asset_type}: {status}"
                )
        for group in line.asset_groups:
            if group not in constants.UNIT_GROUPS:
                raise ValidationError(
                    f"Invalid asset group for {line.asset_type}: {group}"
                )
        if not line.location:
            raise ValidationError(f"Location is required for {line.asset_type}")
        if not constants.is_valid_location(line.location):
            raise ValidationError(f"Invalid location: {line.location}")
        for field in schema.required:
            if not getattr(line, field):
                label = field.replace("_", " ").capitalize()
                raise ValidationError(f"{label} is required for {line.asset_type}")
        if inward:
            for position, status in enumerate(line.asset_statuses, start=1):
                if (
                    status == constants.UNIT_STATUS_SCRAP
                    and not line.asset_conditions[position - 1].strip()
                ):
                    raise ValidationError(
                        f"Asset condition is required for scrapped item in "
                        f"{line.asset_type} at position {position}"
                    )

    serial_errors = validate_order_serials(order_type, lines)
    problems = [
        f"{lines[i].asset_type} serial {lines[i].serial_numbers[pos]}: {msg}"
        for i, unit_errors in serial_errors.items()
        for pos, msg in enumerate(unit_errors)
        if msg
    ]
    if problems:
        raise ValidationError(problems)
    return serial_errors


def log_order_history(order: Order, field, old, new, operation, user) -> OrderHistory:
    return OrderHistory.objects.create(
        record_id=str(order.pk),
        sales_order=order.sales_order,
        table_name="orders",
        field_name=field,
        old_data="" if old is None else str(old),
        new_data="" if new is None else str(new),
        operation=operation,
        updated_by=actor_name(user),
    )


def create_order(
    order_type, employee_id, employee_name, lines, user, sales_order=""
) -> list[Order]:
    """Persist a validated submission: one Order and its Devices per line."""
    permissions.require(
        permissions.can_write_assets, user, "You cannot create orders."
    )
    validate_order(order_type, employee_id, employee_name, lines)
    actor = actor_name(user)
    now = timezone.now()
    sales_order = (sales_order or "").strip() or generate_sales_order()
    material = constants.material_type_for(order_type)
    device_status = (
        constants.STATUS_AVAILABLE
        if material == constants.MATERIAL_INWARD
        else constants.STATUS_ASSIGNED
    )
    employee_id, employee_name = employee_id.strip(), employee_name.strip()

    orders = []
    with db_transaction.atomic():
        for line in lines:
            product = line.product or constants.DEFAULT_PRODUCT
            order = Order.objects.create(
                order_type=order_type,
                asset_type=line.asset_type,
                model=line.model,
                quantity=line.quantity,
                warehouse=line.location,
                sales_order=sales_order,
                employee_id=employee_id,
                employee_name=employee_name,
                serial_numbers=line.entered_serials,
                order_date=now,
                configuration=line.configuration,
                product=product,
                sd_card_size=line.sd_card_size,
                profile_id=line.profile_id,
                created_by=actor,
                created_at=now,
                updated_by=actor,
                updated_at=now,
            )
            Device.objects.bulk_create(
                [
                    Device(
                        asset_type=line.asset_type,
                        model=line.model,
                        serial_number=(
                            line.serial_numbers[i].strip() if line.has_serials else ""
                        ),
                        warehouse=line.location,
                        sales_order=sales_order,
                        employee_id=employee_id,
                        employee_name=employee_name,
                        status=device_status,
                        material_type=material,
                        order=order,
                        configuration=line.configuration,
                        product=product,
                        sd_card_size=line.sd_card_size,
                        profile_id=line.profile_id,
                        asset_status=line.asset_statuses[i] or constants.DEFAULT_UNIT_STATUS,
                        asset_group=line.asset_groups[i] or constants.DEFAULT_UNIT_GROUP,
                        asset_condition=line.asset_conditions[i],
                        far_code=line.far_codes[i],
                        created_by=actor,
                        created_at=now,
                        updated_by=actor,
                        updated_at=now,
                    )
                    for i in range(line.quantity)
                ]
            )
            log_order_history(order, "order_type", None, order_type, "INSERT", user)
            orders.append(order)

    logger.info(
        "Order %s (%s, %d lines) created by %s",
        sales_order,
        order_type,
        len(orders),
        actor,
    )
    return orders


def _ensure_creator(order: Order, user, action: str) -> None:
    if order.created_by != actor_name(user):
        logger.warning(
            "%s tried to %s order %s created by %s",
            actor_name(user),
            action,
            order.pk,
            order.created_by,
        )
        raise PermissionDenied(f"You can only {action} orders you created.")


def update_order(order: Order, changes: dict, user) -> Order:
    _ensure_creator(order, user, "edit")
    unknown = set(changes) - set(ORDER_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Fields cannot be edited: {', '.join(sorted(unknown))}."
        )

    cleaned = {}
    for field, value in changes.items():
        if field == "quantity":
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid quantity '{value}'.")
            if value < 1:
                raise ValidationError("Quantity must be at least 1.")
        elif field == "serial_numbers":
            if isinstance(value, str):
                value = value.split(",")
            value = [str(s).strip() for s in value if str(s).strip()]
        else:
            value = str(value or "").strip()
            if field != "model" and not value:
                label = field.replace("_", " ").capitalize()
                raise ValidationError(f"{label} is required.")
        cleaned[field] = value
    if "warehouse" in cleaned and not constants.is_valid_location(cleaned["warehouse"]):
        raise ValidationError(f"Invalid location: {cleaned['warehouse']}")

    with db_transaction.atomic():
        for field, value in cleaned.items():
            old = getattr(order, field)
            if old == value:
                continue
            setattr(order, field, value)
            log_order_history(order, field, old, value, "UPDATE", user)
        order.updated_by = actor_name(user)
        order.updated_at = timezone.now()
        order.save()
    logger.info("Order %s updated by %s", order.pk, actor_name(user))
    return order


def delete_order(order: Order, user) -> None:
    """Delete an order and retire its devices from stock checks."""
    _ensure_creator(order, user, "delete")
    with db_transaction.atomic():
        log_order_history(order, "order_type", order.order_type, None, "DELETE", user)
        order.devices.update(
            is_deleted=True, updated_by=actor_name(user), updated_at=timezone.now()
        )
        pk = order.pk
        order.delete()
    logger.info("Order %s deleted by %s", pk, actor_name(user))


def orders_for(user, mine_only=False):
    orders = Order.objects.all()
    if mine_only:
        orders = orders.filter(created_by=actor_name(user))
    return orders


# Bulk order upload (template in export.ORDER_TEMPLATE_HEADERS)
ORDER_FIELD_MAP = {
    "sales order": "sales_order",
    "employee id": "employee_id",
    "employee name": "employee_name",
    "order type": "order_type",
    "asset type": "asset_type",
    "model": "model",
    "configuration": "configuration",
    "product": "product",
    "sd card size": "sd_card_size",
    "profile id": "profile_id",
    "location": "location",
    "quantity": "quantity",
    "serial number": "serial_number",
    "asset status": "asset_status",
    "asset group": "asset_group",
}

LINE_KEY_FIELDS = (
    "asset_type", "model", "location", "configuration", "product",
    "sd_card_size", "profile_id",
)


def _group_upload(headers, rows) -> dict:
    columns = {}
    for index, header in enumerate(headers):
        field = ORDER_FIELD_MAP.get(normalise_header(header))
        if field:
            columns.setdefault(field, index)
    missing = [
        label
        for label, field in (
            ("Order Type", "order_type"),
            ("Asset Type", "asset_type"),
            ("Location", "location"),
        )
        if field not in columns
    ]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    groups = {}
    for offset, row in enumerate(rows):
        record = {
            field: (str(row[i]).strip() if i < len(row) and row[i] is not None else "")
            for field, i in columns.items()
        }
        # rows without a sales order each start their own order
        key = record.get("sales_order") or f"__row{offset}"
        groups.setdefault(key, []).append((offset + 2, row, record))
    return groups


def _lines_from_records(records) -> list[OrderLine]:
    merged = {}
    for _number, _row, record in records:
        key = tuple(record.get(f, "") for f in LINE_KEY_FIELDS)
        merged.setdefault(key, []).append(record)

    lines = []
    for key, group in merged.items():
        values = dict(zip(LINE_KEY_FIELDS, key))
        asset_type = values.pop("asset_type")
        serial_rows = [r for r in group if r.get("serial_number")]
        try:
            declared = int(group[0].get("quantity") or 0)
        except ValueError:
            raise ValidationError(f"Invalid quantity '{group[0]['quantity']}'.")
        quantity = max(declared, len(serial_rows), 1)
        unit_rows = serial_rows or group
        lines.append(
            OrderLine.create(
                asset_type,
                quantity=quantity,
                has_serials=bool(serial_rows) or None,
                serial_numbers=[r["serial_number"] for r in serial_rows],
                asset_statuses=[
                    r.get("asset_status") or constants.DEFAULT_UNIT_STATUS
                    for r in unit_rows
                ],
                asset_groups=[
                    r.get("asset_group") or constants.DEFAULT_UNIT_GROUP
                    for r in unit_rows
                ],
                **values,
            )
        )
    return lines


def import_orders(headers, rows, user):
    """Create orders from an uploaded sheet, one order per sales order.

    A group that fails validation is reported against each of its rows
    and does not block the others.
    """
    permissions.require(
        permissions.can_write_assets, user, "You cannot create orders."
    )
    report = ImportReport()
    for key, records in _group_upload(headers, rows).items():
        first = records[0][2]
        sales_order = "" if key.startswith("__row") else key
        try:
            lines = _lines_from_records(records)
            orders = create_order(
                first.get("order_type", ""),
                first.get("employee_id", ""),
                first.get("employee_name", ""),
                lines,
                user,
                sales_order=sales_order,
            )
        except ValidationError as exc:
            message = "; ".join(exc.messages)
            logger.warning("Order upload group %s skipped: %s", key, message)
            for number, row, _record in records:
                report.errors.append(RowError(number, message, list(row)))
            continue
        report.created += len(orders)
    return report

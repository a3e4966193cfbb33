"""Models for ITAM asset inventory."""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from . import constants


def warranty_status_for(warranty_end, today=None):
    """Derive the warranty status label from the warranty end date."""
    if warranty_end is None:
        return constants.WARRANTY_OUT
    today = today or timezone.localdate()
    if warranty_end >= today:
        return constants.WARRANTY_IN
    return constants.WARRANTY_OUT


class Asset(models.Model):
    """Individual tracked IT asset."""

    STATUS_CHOICES = [(s, s) for s in constants.ASSET_STATUSES]

    asset_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=100)
    brand = models.CharField(max_length=100)
    configuration = models.CharField(max_length=255, blank=True)
    serial_number = models.CharField(max_length=150, unique=True)
    far_code = models.CharField(
        max_length=100,
        blank=True,
        help_text="Fixed-asset-register code",
    )
    provider = models.CharField(max_length=150, blank=True)
    status = models.CharField(
        max_length=30,
        choices=STATUS_CHOICES,
        default=constants.STATUS_AVAILABLE,
    )
    location = models.CharField(max_length=100, blank=True)
    assigned_to = models.CharField(max_length=200, blank=True)
    employee_id = models.CharField(max_length=100, blank=True)
    assigned_date = models.DateTimeField(null=True, blank=True)
    return_date = models.DateTimeField(null=True, blank=True)
    received_by = models.CharField(max_length=200, blank=True)
    remarks = models.TextField(blank=True)
    asset_condition = models.CharField(max_length=255, blank=True)
    asset_check = models.CharField(max_length=50, blank=True)
    recovery_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    warranty_start = models.DateField(null=True, blank=True)
    warranty_end = models.DateField(null=True, blank=True)
    warranty_status = models.CharField(
        max_length=20,
        default=constants.WARRANTY_OUT,
        editable=False,
    )
    created_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_by = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_asset_status"),
            models.Index(fields=["location"], name="idx_asset_location"),
            models.Index(fields=["type"], name="idx_asset_type"),
            models.Index(
                fields=["employee_id"], name="idx_asset_employee_id"
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.asset_id})"

    def save(self, *args, **kwargs):
        self.warranty_status = warranty_status_for(self.warranty_end)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "warranty_end" in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["warranty_status"]
        super().save(*args, **kwargs)

    def clean(self):
        super().clean()
        if self.assigned_to:
            if not self.employee_id:
                raise ValidationError(
                    {"employee_id": "Employee ID is required for an "
                     "assigned asset."}
                )
            if self.status != constants.STATUS_ASSIGNED:
                raise ValidationError(
                    {"status": "An asset with an assignee must have status "
                     "Assigned."}
                )

    @property
    def is_assigned(self):
        return self.status == constants.STATUS_ASSIGNED


class Employee(models.Model):
    """Reference record used to populate assignment fields."""

    employee_id = models.CharField(max_length=100, unique=True)
    employee_name = models.CharField(max_length=200)
    email = models.EmailField()
    role = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["employee_name"]

    def __str__(self):
        return f"{self.employee_name} ({self.employee_id})"


class PendingRequest(models.Model):
    """An assign or return action awaiting administrative approval."""

    TYPE_ASSIGN = "assign"
    TYPE_RETURN = "return"
    TYPE_CHOICES = [
        (TYPE_ASSIGN, "Assign"),
        (TYPE_RETURN, "Return"),
    ]

    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    request_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="pending_requests"
    )
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="submitted_requests",
    )
    # Assignment payload
    assign_to = models.CharField(max_length=200, blank=True)
    employee_id = models.CharField(max_length=100, blank=True)
    employee_email = models.EmailField(blank=True)
    # Return payload
    return_status = models.CharField(max_length=30, blank=True)
    return_location = models.CharField(max_length=100, blank=True)
    return_remarks = models.TextField(blank=True)
    asset_condition = models.CharField(max_length=255, blank=True)
    received_by = models.CharField(max_length=200, blank=True)
    configuration = models.CharField(max_length=255, blank=True)
    recovery_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )

    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="decided_requests",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_requests",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_request_status"),
        ]

    def __str__(self):
        return (
            f"{self.get_request_type_display()} {self.asset.asset_id} "
            f"({self.status})"
        )

    @property
    def is_terminal(self):
        return self.status != self.STATUS_PENDING


class AssetEditHistory(models.Model):
    """Field-level audit trail for asset mutations."""

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="edit_history"
    )
    field_changed = models.CharField(max_length=100)
    old_value = models.TextField(blank=True, null=True)
    new_value = models.TextField(blank=True, null=True)
    changed_by = models.CharField(max_length=255, blank=True)
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-changed_at", "-pk"]
        verbose_name_plural = "asset edit history"
        indexes = [
            models.Index(
                fields=["changed_at"], name="idx_edit_history_changed_at"
            ),
        ]

    def __str__(self):
        return f"{self.asset_id}: {self.field_changed} by {self.changed_by}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Edit history entries are immutable and cannot be modified."
            )
        super().save(*args, **kwargs)


class Order(models.Model):
    """A stock movement line: one asset type/model into or out of a warehouse."""

    ORDER_TYPE_CHOICES = [(t, t) for t in constants.ORDER_TYPES]
    MATERIAL_CHOICES = [
        (constants.MATERIAL_INWARD, "Inward"),
        (constants.MATERIAL_OUTWARD, "Outward"),
    ]

    order_type = models.CharField(
        max_length=20, choices=ORDER_TYPE_CHOICES, default="Hardware"
    )
    material_type = models.CharField(
        max_length=10, choices=MATERIAL_CHOICES, editable=False
    )
    asset_type = models.CharField(max_length=50)
    model = models.CharField(max_length=200, blank=True)
    quantity = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    warehouse = models.CharField(max_length=100)
    sales_order = models.CharField(max_length=50, db_index=True)
    employee_id = models.CharField(max_length=100)
    employee_name = models.CharField(max_length=200)
    serial_numbers = models.JSONField(default=list, blank=True)
    order_date = models.DateTimeField(default=timezone.now)
    configuration = models.CharField(max_length=255, blank=True)
    product = models.CharField(max_length=50, blank=True)
    sd_card_size = models.CharField(max_length=50, blank=True)
    profile_id = models.CharField(max_length=100, blank=True)
    created_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_by = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-order_date"]
        indexes = [
            models.Index(
                fields=["warehouse", "asset_type", "model"],
                name="idx_order_stock_key",
            ),
            models.Index(
                fields=["employee_id"], name="idx_order_employee_id"
            ),
        ]

    def __str__(self):
        return (
            f"{self.sales_order} {self.order_type} {self.asset_type} "
            f"x{self.quantity}"
        )

    def save(self, *args, **kwargs):
        self.material_type = constants.material_type_for(self.order_type)
        super().save(*args, **kwargs)

    @property
    def is_inward(self):
        return self.material_type == constants.MATERIAL_INWARD


class Device(models.Model):
    """One unit of an order line, tracked by serial number when known."""

    STATUS_CHOICES = [
        (constants.STATUS_AVAILABLE, constants.STATUS_AVAILABLE),
        (constants.STATUS_ASSIGNED, constants.STATUS_ASSIGNED),
    ]

    asset_type = models.CharField(max_length=50)
    model = models.CharField(max_length=200, blank=True)
    serial_number = models.CharField(max_length=150, blank=True)
    warehouse = models.CharField(max_length=100)
    sales_order = models.CharField(max_length=50, blank=True)
    employee_id = models.CharField(max_length=100, blank=True)
    employee_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    material_type = models.CharField(
        max_length=10, choices=Order.MATERIAL_CHOICES
    )
    order = models.ForeignKey(
        Order,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="devices",
    )
    configuration = models.CharField(max_length=255, blank=True)
    product = models.CharField(max_length=50, blank=True)
    sd_card_size = models.CharField(max_length=50, blank=True)
    profile_id = models.CharField(max_length=100, blank=True)
    asset_status = models.CharField(
        max_length=20, default=constants.DEFAULT_UNIT_STATUS
    )
    asset_group = models.CharField(
        max_length=20, default=constants.DEFAULT_UNIT_GROUP
    )
    asset_condition = models.CharField(max_length=255, blank=True)
    far_code = models.CharField(max_length=100, blank=True)
    is_deleted = models.BooleanField(default=False)
    created_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_by = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-updated_at", "-pk"]
        indexes = [
            models.Index(
                fields=["serial_number", "asset_type"],
                name="idx_device_serial_type",
            ),
            models.Index(fields=["is_deleted"], name="idx_device_is_deleted"),
        ]

    def __str__(self):
        return f"{self.asset_type} {self.serial_number or '-'} @ {self.warehouse}"


class OrderHistory(models.Model):
    """Immutable audit log of order ledger changes."""

    OPERATION_CHOICES = [
        ("INSERT", "Insert"),
        ("UPDATE", "Update"),
        ("DELETE", "Delete"),
    ]

    record_id = models.CharField(max_length=50)
    sales_order = models.CharField(max_length=50, blank=True)
    table_name = models.CharField(max_length=50)
    field_name = models.CharField(max_length=100)
    old_data = models.TextField(blank=True)
    new_data = models.TextField(blank=True)
    operation = models.CharField(max_length=10, choices=OPERATION_CHOICES)
    updated_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-pk"]
        verbose_name_plural = "order history"

    def __str__(self):
        return f"{self.operation} {self.table_name}.{self.field_name}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Order history is immutable and cannot be modified."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Order history is immutable and cannot be deleted.")

"""Admin configuration for assets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import action, display
from unfold.enums import ActionVariant

from django.contrib import admin, messages
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpResponse
from django.utils import timezone

from .models import (
    Asset,
    AssetEditHistory,
    Device,
    Employee,
    Order,
    OrderHistory,
    PendingRequest,
)
from .services import requests
from .services.export import export_assets_full_csv, export_assets_xlsx


class ReadOnlyAdminMixin:
    """Audit tables are written by services only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class AssetEditHistoryInline(ReadOnlyAdminMixin, TabularInline):
    model = AssetEditHistory
    extra = 0
    fields = ["field_changed", "old_value", "new_value", "changed_by", "changed_at"]
    readonly_fields = fields


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "display_status",
        "type",
        "brand",
        "location",
        "display_assignee",
        "warranty_status",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        "type",
        "brand",
        "location",
        "warranty_status",
        "asset_check",
    ]
    list_filter_submit = True
    search_fields = [
        "asset_id",
        "name",
        "serial_number",
        "assigned_to",
        "employee_id",
        "far_code",
    ]
    readonly_fields = [
        "warranty_status",
        "created_by",
        "created_at",
        "updated_by",
        "updated_at",
    ]
    inlines = [AssetEditHistoryInline]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "asset_id",
                    "name",
                    "type",
                    "brand",
                    "configuration",
                    "serial_number",
                    "far_code",
                    "provider",
                    "status",
                    "location",
                )
            },
        ),
        (
            "Assignment",
            {
                "fields": (
                    "assigned_to",
                    "employee_id",
                    "assigned_date",
                    "return_date",
                    "received_by",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Condition",
            {
                "fields": (
                    "asset_condition",
                    "asset_check",
                    "recovery_amount",
                    "remarks",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Warranty",
            {
                "fields": ("warranty_start", "warranty_end", "warranty_status"),
                "classes": ["tab"],
            },
        ),
        (
            "Tracking",
            {
                "fields": (
                    "created_by",
                    "created_at",
                    "updated_by",
                    "updated_at",
                ),
                "classes": ["tab"],
            },
        ),
    )

    actions = ["export_selected_xlsx", "export_selected_csv"]

    @display(description="Asset", header=True, ordering="asset_id")
    def display_header(self, obj):
        return obj.name, obj.asset_id

    @display(
        description="Status",
        label={
            "Available": "success",
            "Assigned": "info",
            "Scrap/Damage": "danger",
            "Sold": "default",
            "Sale": "warning",
            "Lost": "danger",
            "Emp Damage": "warning",
            "Courier Damage": "warning",
            "Others": "default",
        },
    )
    def display_status(self, obj):
        return obj.status

    @display(description="Assigned To", empty_value="-")
    def display_assignee(self, obj):
        if obj.assigned_to:
            return f"{obj.assigned_to} ({obj.employee_id})"
        return None

    @action(
        description="Export selected to Excel",
        icon="download",
        variant=ActionVariant.PRIMARY,
    )
    def export_selected_xlsx(self, request, queryset):
        buffer = export_assets_xlsx(queryset)
        response = HttpResponse(
            buffer.getvalue(),
            content_type="application/vnd.openxmlformats-officedocument"
            ".spreadsheetml.sheet",
        )
        filename = f"assets-export-{timezone.localdate().isoformat()}.xlsx"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response

    @action(description="Export selected to CSV", icon="download")
    def export_selected_csv(self, request, queryset):
        response = HttpResponse(
            export_assets_full_csv(queryset), content_type="text/csv"
        )
        filename = f"assets-export-{timezone.localdate().isoformat()}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response


@admin.register(AssetEditHistory)
class AssetEditHistoryAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "asset",
        "field_changed",
        "old_value",
        "new_value",
        "changed_by",
        "changed_at",
    ]
    list_filter = ["field_changed"]
    search_fields = ["asset__asset_id", "changed_by"]
    list_select_related = ["asset"]


@admin.register(Employee)
class EmployeeAdmin(ModelAdmin):
    list_display = ["employee_id", "employee_name", "email", "role", "department"]
    list_filter = ["department"]
    search_fields = ["employee_id", "employee_name", "email"]


@admin.register(PendingRequest)
class PendingRequestAdmin(ModelAdmin):
    list_display = [
        "asset",
        "request_type",
        "display_status",
        "requested_by",
        "assign_to",
        "return_status",
        "created_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("request_type", ChoicesDropdownFilter),
    ]
    search_fields = ["asset__asset_id", "assign_to", "employee_id"]
    list_select_related = ["asset", "requested_by"]
    readonly_fields = [
        "status",
        "approved_by",
        "approved_at",
        "cancelled_by",
        "cancelled_at",
        "created_at",
        "updated_at",
    ]
    actions = ["approve_selected", "reject_selected"]

    @display(
        description="Status",
        label={
            "pending": "warning",
            "approved": "success",
            "rejected": "danger",
            "cancelled": "default",
        },
    )
    def display_status(self, obj):
        return obj.status

    def _decide(self, request, queryset, decide, verb):
        done = 0
        for pending in queryset.select_related("asset"):
            try:
                decide(pending, request.user)
            except (ValidationError, PermissionDenied) as exc:
                messages.error(
                    request, f"{pending}: {'; '.join(getattr(exc, 'messages', [str(exc)]))}"
                )
                continue
            done += 1
        if done:
            messages.success(request, f"{done} request(s) {verb}.")

    @action(description="Approve selected requests")
    def approve_selected(self, request, queryset):
        self._decide(request, queryset, requests.approve_request, "approved")

    @action(description="Reject selected requests")
    def reject_selected(self, request, queryset):
        self._decide(request, queryset, requests.reject_request, "rejected")


class DeviceInline(TabularInline):
    model = Device
    extra = 0
    fields = [
        "serial_number",
        "status",
        "asset_status",
        "asset_group",
        "asset_condition",
        "far_code",
        "is_deleted",
    ]
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(ModelAdmin):
    list_display = [
        "sales_order",
        "order_type",
        "display_material",
        "asset_type",
        "model",
        "quantity",
        "warehouse",
        "employee_name",
        "order_date",
    ]
    list_filter = [
        ("order_type", ChoicesDropdownFilter),
        "material_type",
        "asset_type",
        "warehouse",
    ]
    search_fields = ["sales_order", "employee_id", "employee_name", "model"]
    readonly_fields = ["material_type", "created_by", "created_at", "updated_by", "updated_at"]
    inlines = [DeviceInline]

    @display(
        description="Material",
        label={"Inward": "success", "Outward": "info"},
    )
    def display_material(self, obj):
        return obj.material_type


@admin.register(Device)
class DeviceAdmin(ModelAdmin):
    list_display = [
        "serial_number",
        "asset_type",
        "model",
        "warehouse",
        "material_type",
        "status",
        "is_deleted",
        "updated_at",
    ]
    list_filter = ["material_type", "status", "asset_type", "warehouse", "is_deleted"]
    search_fields = ["serial_number", "sales_order", "employee_id"]


@admin.register(OrderHistory)
class OrderHistoryAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "record_id",
        "sales_order",
        "table_name",
        "field_name",
        "operation",
        "updated_by",
        "created_at",
    ]
    list_filter = ["operation", "table_name"]
    search_fields = ["sales_order", "record_id", "updated_by"]

"""JSON and file-download views for the assets app."""

from django_ratelimit.decorators import ratelimit

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from itam.http import json_error, json_errors, request_data, to_json, to_json_tree

from . import constants
from .forms import RejectRequestForm, UploadForm
from .models import Asset, Employee, Order, PendingRequest
from .services import (
    bulk,
    employees,
    export,
    filters,
    history,
    orders,
    permissions,
    requests,
    state,
    stock,
)

ASSET_FIELDS = [
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
    "assigned_to",
    "employee_id",
    "assigned_date",
    "return_date",
    "received_by",
    "remarks",
    "asset_condition",
    "asset_check",
    "recovery_amount",
    "warranty_start",
    "warranty_end",
    "warranty_status",
    "created_by",
    "created_at",
    "updated_by",
    "updated_at",
]

ORDER_FIELDS = [
    "order_type",
    "material_type",
    "asset_type",
    "model",
    "quantity",
    "warehouse",
    "sales_order",
    "employee_id",
    "employee_name",
    "serial_numbers",
    "order_date",
    "configuration",
    "product",
    "sd_card_size",
    "profile_id",
    "created_by",
    "created_at",
    "updated_by",
    "updated_at",
]


def serialize_asset(asset):
    data = {"id": asset.pk}
    data.update({f: to_json(getattr(asset, f)) for f in ASSET_FIELDS})
    return data


def serialize_employee(employee):
    return {
        "id": employee.pk,
        "employee_id": employee.employee_id,
        "employee_name": employee.employee_name,
        "email": employee.email,
        "role": employee.role,
        "department": employee.department,
    }


def serialize_request(req):
    return {
        "id": req.pk,
        "request_type": req.request_type,
        "status": req.status,
        "asset": {"id": req.asset_id, "asset_id": req.asset.asset_id, "name": req.asset.name},
        "requested_by": req.requested_by.actor if req.requested_by else None,
        "assign_to": req.assign_to,
        "employee_id": req.employee_id,
        "employee_email": req.employee_email,
        "return_status": req.return_status,
        "return_location": req.return_location,
        "return_remarks": req.return_remarks,
        "asset_condition": req.asset_condition,
        "received_by": req.received_by,
        "configuration": req.configuration,
        "recovery_amount": to_json(req.recovery_amount),
        "approved_by": req.approved_by.actor if req.approved_by else None,
        "approved_at": to_json(req.approved_at),
        "cancelled_at": to_json(req.cancelled_at),
        "rejection_reason": req.rejection_reason,
        "created_at": to_json(req.created_at),
    }


def serialize_order(order):
    data = {"id": order.pk}
    data.update({f: to_json(getattr(order, f)) for f in ORDER_FIELDS})
    return data


def _download(content, filename, content_type="text/csv; charset=utf-8"):
    response = HttpResponse(content, content_type=content_type)
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def _stamped(prefix, extension):
    return f"{prefix}_{timezone.localdate().isoformat()}.{extension}"


def _read_upload_form(request):
    form = UploadForm(request.POST, request.FILES)
    if not form.is_valid():
        errors = [str(e) for errs in form.errors.values() for e in errs]
        raise ValidationError(errors)
    headers, rows = bulk.read_upload(form.cleaned_data["file"])
    return headers, rows, form.cleaned_data["update_existing"]


# Assets


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def asset_list(request):
    """Filtered asset list with dropdown options and dashboard cards.

    POST creates an asset.
    """
    if request.method == "POST":
        asset = state.create_asset(request_data(request), request.user)
        return JsonResponse({"asset": serialize_asset(asset)}, status=201)

    criteria = filters.FilterCriteria.from_query(request.GET)
    assets = list(Asset.objects.all())
    matched = filters.filter_assets(assets, criteria)
    return JsonResponse(
        {
            "count": len(matched),
            "filters": criteria.to_query(),
            "assets": [serialize_asset(a) for a in matched],
            "options": filters.all_options(assets, criteria),
            "aggregates": to_json_tree(filters.dashboard_aggregates(matched)),
        }
    )


@login_required
@require_http_methods(["GET", "POST", "DELETE"])
@json_errors
def asset_detail(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    if request.method == "DELETE":
        state.delete_asset(asset, request.user)
        return JsonResponse({"deleted": pk})
    if request.method == "POST":
        asset = state.update_asset(asset, request_data(request), request.user)
    return JsonResponse({"asset": serialize_asset(asset)})


@login_required
@require_POST
@json_errors
def asset_assign(request, pk):
    """Assign (or sell) an asset; Operators file a pending request instead."""
    asset = get_object_or_404(Asset, pk=pk)
    data = request_data(request)
    args = (
        asset,
        data.get("employee_name") or data.get("assigned_to"),
        data.get("employee_id"),
        request.user,
    )
    options = {
        "status": data.get("status") or constants.STATUS_ASSIGNED,
        "recovery_amount": data.get("recovery_amount"),
    }
    if permissions.requires_approval(request.user):
        pending = requests.submit_assign_request(*args, **options)
        return JsonResponse({"request": serialize_request(pending)}, status=202)
    email = (data.get("email") or "").strip()
    asset = state.assign_asset(*args, email=email, **options)
    return JsonResponse({"asset": serialize_asset(asset)})


@login_required
@require_POST
@json_errors
def asset_return(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    data = request_data(request)
    options = {
        "status": data.get("status") or constants.STATUS_AVAILABLE,
        "location": data.get("location"),
        "remarks": data.get("remarks"),
        "asset_condition": data.get("asset_condition"),
        "configuration": data.get("configuration"),
        "recovery_amount": data.get("recovery_amount"),
    }
    if permissions.requires_approval(request.user):
        pending = requests.submit_return_request(
            asset, request.user, received_by=data.get("received_by"), **options
        )
        return JsonResponse({"request": serialize_request(pending)}, status=202)
    asset = state.return_asset(
        asset, data.get("received_by"), request.user, **options
    )
    return JsonResponse({"asset": serialize_asset(asset)})


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def asset_status(request, pk):
    """GET describes the status dialog; POST applies the change."""
    asset = get_object_or_404(Asset, pk=pk)
    if request.method == "GET":
        return JsonResponse(state.status_change_options(asset))
    data = request_data(request)
    asset = state.change_status(
        asset,
        data.get("status"),
        request.user,
        recovery_amount=data.get("recovery_amount"),
        location=data.get("location"),
        remarks=data.get("remarks"),
    )
    return JsonResponse({"asset": serialize_asset(asset)})


@login_required
@require_POST
@json_errors
def asset_location(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    asset = state.update_location(
        asset, request_data(request).get("location"), request.user
    )
    return JsonResponse({"asset": serialize_asset(asset)})


@login_required
@require_POST
@json_errors
def asset_check(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    asset = state.update_asset_check(
        asset, request_data(request).get("asset_check"), request.user
    )
    return JsonResponse({"asset": serialize_asset(asset)})


@login_required
@require_GET
def asset_history(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    entries = [
        {
            "field_changed": e.field_changed,
            "old_value": e.old_value,
            "new_value": e.new_value,
            "changed_by": e.changed_by,
            "changed_at": to_json(e.changed_at),
        }
        for e in history.history_for(asset)
    ]
    return JsonResponse({"asset_id": asset.asset_id, "history": entries})


@login_required
@require_GET
@json_errors
def asset_export(request):
    """Download the filtered assets as csv, full csv or xlsx."""
    criteria = filters.FilterCriteria.from_query(request.GET)
    assets = filters.filter_assets(Asset.objects.all(), criteria)
    kind = request.GET.get("format", "csv")
    if kind == "xlsx":
        return _download(
            export.export_assets_xlsx(assets).getvalue(),
            _stamped("assets", "xlsx"),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
    if kind == "full":
        return _download(
            export.export_assets_full_csv(assets), _stamped("assets_export", "csv")
        )
    if kind != "csv":
        return json_error(f"Unknown export format '{kind}'.")
    return _download(export.export_assets_csv(assets), _stamped("assets", "csv"))


@login_required
@require_GET
def asset_template(request):
    with_examples = request.GET.get("examples") in ("1", "true", "yes")
    return _download(
        export.asset_template_csv(with_examples=with_examples),
        "asset_template.csv",
    )


@login_required
@require_POST
@ratelimit(key="user", rate="10/m", method="POST", block=True)
@json_errors
def asset_import(request):
    """Bulk import; the response carries the rejected rows as CSV text."""
    headers, rows, update_existing = _read_upload_form(request)
    report = bulk.import_assets(
        headers, rows, request.user, update_existing=update_existing
    )
    data = report.as_dict()
    if report.errors:
        data["skipped_rows_csv"] = bulk.skipped_rows_csv(report, headers)
    return JsonResponse(data)


@login_required
@require_GET
@json_errors
def audit(request):
    criteria = filters.FilterCriteria.from_query(request.GET)
    result = filters.audit_view(Asset.objects.all(), criteria)
    return JsonResponse(
        {
            "assets": [serialize_asset(a) for a in result["assets"]],
            "options": result["options"],
        }
    )


@login_required
@require_GET
@json_errors
def summary(request):
    criteria = filters.FilterCriteria.from_query(request.GET)
    assets = filters.filter_assets(Asset.objects.all(), criteria)
    return JsonResponse(to_json_tree(filters.summary_rows(assets)))


# Employees


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def employee_list(request):
    if request.method == "POST":
        employee = employees.create_employee(request_data(request), request.user)
        return JsonResponse({"employee": serialize_employee(employee)}, status=201)
    found = employees.search_employees(request.GET.get("q", ""))
    return JsonResponse({"employees": [serialize_employee(e) for e in found]})


@login_required
@require_http_methods(["GET", "POST", "DELETE"])
@json_errors
def employee_detail(request, pk):
    employee = get_object_or_404(Employee, pk=pk)
    if request.method == "DELETE":
        employees.delete_employee(employee, request.user)
        return JsonResponse({"deleted": pk})
    if request.method == "POST":
        employee = employees.update_employee(
            employee, request_data(request), request.user
        )
    assigned = Asset.objects.filter(employee_id=employee.employee_id)
    return JsonResponse(
        {
            "employee": serialize_employee(employee),
            "assets": [serialize_asset(a) for a in assigned],
        }
    )


@login_required
@require_POST
@ratelimit(key="user", rate="10/m", method="POST", block=True)
@json_errors
def employee_import(request):
    headers, rows, _update = _read_upload_form(request)
    report = employees.import_employees(headers, rows, request.user)
    return JsonResponse(report.as_dict())


@login_required
@require_GET
def employee_export(request):
    return _download(
        export.export_employees_csv(Employee.objects.all()),
        _stamped("employees", "csv"),
    )


@login_required
@require_GET
def employee_template(request):
    return _download(export.employee_template_csv(), "employee_template.csv")


# Pending requests


@login_required
@require_GET
def request_list(request):
    """Open requests by default; ``?status=all`` lists every request."""
    status = request.GET.get("status", PendingRequest.STATUS_PENDING)
    pending = PendingRequest.objects.select_related(
        "asset", "requested_by", "approved_by"
    )
    if status != "all":
        pending = pending.filter(status=status)
    if request.GET.get("mine"):
        pending = pending.filter(requested_by=request.user)
    return JsonResponse(
        {
            "pending_count": requests.pending_count(),
            "requests": [serialize_request(r) for r in pending],
        }
    )


def _get_request(pk):
    return get_object_or_404(
        PendingRequest.objects.select_related("asset", "requested_by"), pk=pk
    )


@login_required
@require_POST
@json_errors
def request_approve(request, pk):
    pending = _get_request(pk)
    overrides = request_data(request).get("overrides") or None
    if overrides is not None and not isinstance(overrides, dict):
        raise ValidationError("Overrides must be an object.")
    pending = requests.approve_request(pending, request.user, overrides=overrides)
    return JsonResponse({"request": serialize_request(pending)})


@login_required
@require_POST
@json_errors
def request_reject(request, pk):
    pending = _get_request(pk)
    form = RejectRequestForm(request_data(request))
    reason = form.cleaned_data["reason"] if form.is_valid() else ""
    pending = requests.reject_request(pending, request.user, reason=reason)
    return JsonResponse({"request": serialize_request(pending)})


@login_required
@require_POST
@json_errors
def request_cancel(request, pk):
    pending = requests.cancel_request(_get_request(pk), request.user)
    return JsonResponse({"request": serialize_request(pending)})


# Orders and stock


def _order_payload(data):
    raw_lines = data.get("lines") or []
    if not isinstance(raw_lines, list):
        raise ValidationError("Lines must be a list.")
    return [orders.OrderLine.from_dict(line) for line in raw_lines]


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def order_list(request):
    if request.method == "POST":
        data = request_data(request)
        created = orders.create_order(
            data.get("order_type", ""),
            data.get("employee_id", ""),
            data.get("employee_name", ""),
            _order_payload(data),
            request.user,
            sales_order=data.get("sales_order", ""),
        )
        return JsonResponse(
            {"orders": [serialize_order(o) for o in created]}, status=201
        )
    found = orders.orders_for(request.user, mine_only=bool(request.GET.get("mine")))
    return JsonResponse({"orders": [serialize_order(o) for o in found]})


@login_required
@require_POST
@json_errors
def order_validate_serials(request):
    """Live serial check for the order form."""
    data = request_data(request)
    errors = orders.validate_order_serials(
        data.get("order_type", ""), _order_payload(data)
    )
    return JsonResponse({"errors": {str(k): v for k, v in errors.items()}})


@login_required
@require_http_methods(["GET", "POST", "DELETE"])
@json_errors
def order_detail(request, pk):
    order = get_object_or_404(Order, pk=pk)
    if request.method == "DELETE":
        orders.delete_order(order, request.user)
        return JsonResponse({"deleted": pk})
    if request.method == "POST":
        order = orders.update_order(order, request_data(request), request.user)
    return JsonResponse({"order": serialize_order(order)})


@login_required
@require_GET
def order_template(request):
    return _download(export.order_template_csv(), "asset_details_template.csv")


@login_required
@require_POST
@ratelimit(key="user", rate="10/m", method="POST", block=True)
@json_errors
def order_import(request):
    headers, rows, _update = _read_upload_form(request)
    report = orders.import_orders(headers, rows, request.user)
    return JsonResponse(report.as_dict())


@login_required
@require_GET
def stock_view(request):
    return JsonResponse({"rows": stock.stock_summary()})


@login_required
@require_GET
def employee_stock_view(request):
    return JsonResponse({"rows": stock.employee_summary()})


@login_required
@require_GET
def dashboard(request):
    """Dashboard cards over the whole inventory."""
    aggregates = filters.dashboard_aggregates(Asset.objects.all())
    aggregates["pending_requests"] = requests.pending_count()
    return JsonResponse(to_json_tree(aggregates))

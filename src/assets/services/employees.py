"""Employee directory: CRUD and bulk upload."""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.db.models import Q

from ..forms import EmployeeForm
from ..models import Employee
from . import permissions
from .bulk import ImportReport, RowError, normalise_header
from .history import actor_name

logger = logging.getLogger(__name__)

EMPLOYEE_FIELDS = ["employee_id", "employee_name", "email", "role", "department"]


def search_employees(query: str = ""):
    employees = Employee.objects.all()
    query = (query or "").strip()
    if query:
        employees = employees.filter(
            Q(employee_id__icontains=query)
            | Q(employee_name__icontains=query)
            | Q(email__icontains=query)
            | Q(department__icontains=query)
        )
    return employees


def _form_error(form) -> ValidationError:
    messages = [
        f"{field}: {error}" if field != "__all__" else str(error)
        for field, errors in form.errors.items()
        for error in errors
    ]
    return ValidationError(messages)


def create_employee(data: dict, user) -> Employee:
    permissions.require(
        permissions.can_write_assets, user, "You cannot manage employees."
    )
    form = EmployeeForm(data=data)
    if not form.is_valid():
        raise _form_error(form)
    employee = form.save()
    logger.info("Employee %s created by %s", employee.employee_id, actor_name(user))
    return employee


def update_employee(employee: Employee, data: dict, user) -> Employee:
    permissions.require(
        permissions.can_write_assets, user, "You cannot manage employees."
    )
    current = {f: getattr(employee, f) for f in EMPLOYEE_FIELDS}
    form = EmployeeForm(data={**current, **data}, instance=employee)
    if not form.is_valid():
        raise _form_error(form)
    employee = form.save()
    logger.info("Employee %s updated by %s", employee.employee_id, actor_name(user))
    return employee


def delete_employee(employee: Employee, user) -> None:
    permissions.require(
        permissions.can_delete_employees,
        user,
        "Only Super Admin can delete employees.",
    )
    employee_id = employee.employee_id
    employee.delete()
    logger.info("Employee %s deleted by %s", employee_id, actor_name(user))


def import_employees(headers, rows, user) -> ImportReport:
    """Create or update employees from an uploaded sheet keyed by employee_id."""
    permissions.require(
        permissions.can_write_assets, user, "You cannot manage employees."
    )
    columns = {}
    for index, header in enumerate(headers):
        key = normalise_header(header).replace(" ", "_")
        if key in EMPLOYEE_FIELDS:
            columns.setdefault(key, index)

    report = ImportReport()
    for offset, row in enumerate(rows):
        row_number = offset + 2
        record = {
            field: (str(row[i]).strip() if i < len(row) and row[i] is not None else "")
            for field, i in columns.items()
        }
        if not all(record.get(f) for f in ("employee_id", "employee_name", "email")):
            report.errors.append(
                RowError(
                    row_number,
                    f"Row {row_number}: Missing required fields "
                    f"(Employee ID, Name, or Email)",
                    list(row),
                )
            )
            continue
        existing = Employee.objects.filter(employee_id=record["employee_id"]).first()
        form = EmployeeForm(
            data={f: record.get(f, "") for f in EMPLOYEE_FIELDS}, instance=existing
        )
        if not form.is_valid():
            message = f"Row {row_number}: " + "; ".join(_form_error(form).messages)
            report.errors.append(RowError(row_number, message, list(row)))
            continue
        with db_transaction.atomic():
            form.save()
        if existing is None:
            report.created += 1
        else:
            report.updated += 1

    logger.info(
        "Employee upload by %s: %d created, %d updated, %d skipped",
        actor_name(user),
        report.created,
        report.updated,
        report.skipped,
    )
    return report

"""URL configuration for assets app."""

from django.urls import path

from . import views

app_name = "assets"

urlpatterns = [
    # Dashboard
    path("", views.dashboard, name="dashboard"),
    # Assets
    path("assets/", views.asset_list, name="asset_list"),
    path("assets/export/", views.asset_export, name="asset_export"),
    path("assets/template/", views.asset_template, name="asset_template"),
    path("assets/import/", views.asset_import, name="asset_import"),
    path("assets/<int:pk>/", views.asset_detail, name="asset_detail"),
    path("assets/<int:pk>/assign/", views.asset_assign, name="asset_assign"),
    path("assets/<int:pk>/return/", views.asset_return, name="asset_return"),
    path("assets/<int:pk>/status/", views.asset_status, name="asset_status"),
    path(
        "assets/<int:pk>/location/",
        views.asset_location,
        name="asset_location",
    ),
    path(
        "assets/<int:pk>/asset-check/",
        views.asset_check,
        name="asset_check",
    ),
    path(
        "assets/<int:pk>/history/",
        views.asset_history,
        name="asset_history",
    ),
    path("audit/", views.audit, name="audit"),
    path("summary/", views.summary, name="summary"),
    # Employees
    path("employees/", views.employee_list, name="employee_list"),
    path(
        "employees/import/",
        views.employee_import,
        name="employee_import",
    ),
    path(
        "employees/export/",
        views.employee_export,
        name="employee_export",
    ),
    path(
        "employees/template/",
        views.employee_template,
        name="employee_template",
    ),
    path(
        "employees/<int:pk>/",
        views.employee_detail,
        name="employee_detail",
    ),
    # Pending requests
    path("requests/", views.request_list, name="request_list"),
    path(
        "requests/<int:pk>/approve/",
        views.request_approve,
        name="request_approve",
    ),
    path(
        "requests/<int:pk>/reject/",
        views.request_reject,
        name="request_reject",
    ),
    path(
        "requests/<int:pk>/cancel/",
        views.request_cancel,
        name="request_cancel",
    ),
    # Orders and stock
    path("orders/", views.order_list, name="order_list"),
    path("orders/template/", views.order_template, name="order_template"),
    path("orders/import/", views.order_import, name="order_import"),
    path(
        "orders/validate-serials/",
        views.order_validate_serials,
        name="order_validate_serials",
    ),
    path("orders/<int:pk>/", views.order_detail, name="order_detail"),
    path("stock/", views.stock_view, name="stock"),
    path("stock/employees/", views.employee_stock_view, name="employee_stock"),
]

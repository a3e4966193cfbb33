import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

ASSET_STATUS_CHOICES = [
    ("Available", "Available"),
    ("Assigned", "Assigned"),
    ("Scrap/Damage", "Scrap/Damage"),
    ("Sold", "Sold"),
    ("Sale", "Sale"),
    ("Lost", "Lost"),
    ("Emp Damage", "Emp Damage"),
    ("Courier Damage", "Courier Damage"),
    ("Others", "Others"),
]

MATERIAL_CHOICES = [("Inward", "Inward"), ("Outward", "Outward")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Asset",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("asset_id", models.CharField(max_length=100, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("type", models.CharField(max_length=100)),
                ("brand", models.CharField(max_length=100)),
                ("configuration", models.CharField(blank=True, max_length=255)),
                ("serial_number", models.CharField(max_length=150, unique=True)),
                ("far_code", models.CharField(blank=True, help_text="Fixed-asset-register code", max_length=100)),
                ("provider", models.CharField(blank=True, max_length=150)),
                ("status", models.CharField(choices=ASSET_STATUS_CHOICES, default="Available", max_length=30)),
                ("location", models.CharField(blank=True, max_length=100)),
                ("assigned_to", models.CharField(blank=True, max_length=200)),
                ("employee_id", models.CharField(blank=True, max_length=100)),
                ("assigned_date", models.DateTimeField(blank=True, null=True)),
                ("return_date", models.DateTimeField(blank=True, null=True)),
                ("received_by", models.CharField(blank=True, max_length=200)),
                ("remarks", models.TextField(blank=True)),
                ("asset_condition", models.CharField(blank=True, max_length=255)),
                ("asset_check", models.CharField(blank=True, max_length=50)),
                ("recovery_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ("warranty_start", models.DateField(blank=True, null=True)),
                ("warranty_end", models.DateField(blank=True, null=True)),
                ("warranty_status", models.CharField(default="Out of Warranty", editable=False, max_length=20)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="idx_asset_status"),
                    models.Index(fields=["location"], name="idx_asset_location"),
                    models.Index(fields=["type"], name="idx_asset_type"),
                    models.Index(fields=["employee_id"], name="idx_asset_employee_id"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("employee_id", models.CharField(max_length=100, unique=True)),
                ("employee_name", models.CharField(max_length=200)),
                ("email", models.EmailField(max_length=254)),
                ("role", models.CharField(blank=True, max_length=100)),
                ("department", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["employee_name"]},
        ),
        migrations.CreateModel(
            name="PendingRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("request_type", models.CharField(choices=[("assign", "Assign"), ("return", "Return")], max_length=10)),
                ("assign_to", models.CharField(blank=True, max_length=200)),
                ("employee_id", models.CharField(blank=True, max_length=100)),
                ("employee_email", models.EmailField(blank=True, max_length=254)),
                ("return_status", models.CharField(blank=True, max_length=30)),
                ("return_location", models.CharField(blank=True, max_length=100)),
                ("return_remarks", models.TextField(blank=True)),
                ("asset_condition", models.CharField(blank=True, max_length=255)),
                ("received_by", models.CharField(blank=True, max_length=200)),
                ("configuration", models.CharField(blank=True, max_length=255)),
                ("recovery_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected"), ("cancelled", "Cancelled")], default="pending", max_length=10)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("asset", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="pending_requests", to="assets.asset")),
                ("requested_by", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="submitted_requests", to=settings.AUTH_USER_MODEL)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="decided_requests", to=settings.AUTH_USER_MODEL)),
                ("cancelled_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="cancelled_requests", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status"], name="idx_request_status")],
            },
        ),
        migrations.CreateModel(
            name="AssetEditHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("field_changed", models.CharField(max_length=100)),
                ("old_value", models.TextField(blank=True, null=True)),
                ("new_value", models.TextField(blank=True, null=True)),
                ("changed_by", models.CharField(blank=True, max_length=255)),
                ("changed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("asset", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="edit_history", to="assets.asset")),
            ],
            options={
                "verbose_name_plural": "asset edit history",
                "ordering": ["-changed_at", "-pk"],
                "indexes": [models.Index(fields=["changed_at"], name="idx_edit_history_changed_at")],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_type", models.CharField(choices=[("Hardware", "Hardware"), ("Stock", "Stock"), ("Return", "Return"), ("Replacement", "Replacement"), ("Internal", "Internal"), ("Demo", "Demo")], default="Hardware", max_length=20)),
                ("material_type", models.CharField(choices=MATERIAL_CHOICES, editable=False, max_length=10)),
                ("asset_type", models.CharField(max_length=50)),
                ("model", models.CharField(blank=True, max_length=200)),
                ("quantity", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("warehouse", models.CharField(max_length=100)),
                ("sales_order", models.CharField(db_index=True, max_length=50)),
                ("employee_id", models.CharField(max_length=100)),
                ("employee_name", models.CharField(max_length=200)),
                ("serial_numbers", models.JSONField(blank=True, default=list)),
                ("order_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("configuration", models.CharField(blank=True, max_length=255)),
                ("product", models.CharField(blank=True, max_length=50)),
                ("sd_card_size", models.CharField(blank=True, max_length=50)),
                ("profile_id", models.CharField(blank=True, max_length=100)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["-order_date"],
                "indexes": [
                    models.Index(fields=["warehouse", "asset_type", "model"], name="idx_order_stock_key"),
                    models.Index(fields=["employee_id"], name="idx_order_employee_id"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Device",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("asset_type", models.CharField(max_length=50)),
                ("model", models.CharField(blank=True, max_length=200)),
                ("serial_number", models.CharField(blank=True, max_length=150)),
                ("warehouse", models.CharField(max_length=100)),
                ("sales_order", models.CharField(blank=True, max_length=50)),
                ("employee_id", models.CharField(blank=True, max_length=100)),
                ("employee_name", models.CharField(blank=True, max_length=200)),
                ("status", models.CharField(choices=[("Available", "Available"), ("Assigned", "Assigned")], max_length=20)),
                ("material_type", models.CharField(choices=MATERIAL_CHOICES, max_length=10)),
                ("configuration", models.CharField(blank=True, max_length=255)),
                ("product", models.CharField(blank=True, max_length=50)),
                ("sd_card_size", models.CharField(blank=True, max_length=50)),
                ("profile_id", models.CharField(blank=True, max_length=100)),
                ("asset_status", models.CharField(default="Fresh", max_length=20)),
                ("asset_group", models.CharField(default="FA", max_length=20)),
                ("asset_condition", models.CharField(blank=True, max_length=255)),
                ("far_code", models.CharField(blank=True, max_length=100)),
                ("is_deleted", models.BooleanField(default=False)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("order", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="devices", to="assets.order")),
            ],
            options={
                "ordering": ["-updated_at", "-pk"],
                "indexes": [
                    models.Index(fields=["serial_number", "asset_type"], name="idx_device_serial_type"),
                    models.Index(fields=["is_deleted"], name="idx_device_is_deleted"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("record_id", models.CharField(max_length=50)),
                ("sales_order", models.CharField(blank=True, max_length=50)),
                ("table_name", models.CharField(max_length=50)),
                ("field_name", models.CharField(max_length=100)),
                ("old_data", models.TextField(blank=True)),
                ("new_data", models.TextField(blank=True)),
                ("operation", models.CharField(choices=[("INSERT", "Insert"), ("UPDATE", "Update"), ("DELETE", "Delete")], max_length=10)),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name_plural": "order history",
                "ordering": ["-created_at", "-pk"],
            },
        ),
    ]

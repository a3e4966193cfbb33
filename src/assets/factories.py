"""Factory Boy factories for ITAM test data generation."""

import factory
from factory.django import DjangoModelFactory

from django.utils import timezone

from . import constants


class UserFactory(DjangoModelFactory):
    """Factory for CustomUser model. Role defaults to Admin."""

    class Meta:
        model = "accounts.CustomUser"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    display_name = factory.Faker("name")
    role = "Admin"
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])


class AssetFactory(DjangoModelFactory):
    """Factory for an Available asset in the first configured location."""

    class Meta:
        model = "assets.Asset"

    asset_id = factory.Sequence(lambda n: f"AST-{n:04d}")
    name = factory.Sequence(lambda n: f"Laptop {n}")
    type = "Laptop"
    brand = "Lenovo"
    configuration = "16GB RAM, 512GB SSD"
    serial_number = factory.Sequence(lambda n: f"SN{n:06d}")
    status = constants.STATUS_AVAILABLE
    location = "Mumbai Office"
    created_by = "factory@example.com"
    updated_by = "factory@example.com"

    class Params:
        assigned = factory.Trait(
            status=constants.STATUS_ASSIGNED,
            assigned_to="Jane Smith",
            employee_id="EMP001",
            assigned_date=factory.LazyFunction(timezone.now),
        )


class EmployeeFactory(DjangoModelFactory):
    class Meta:
        model = "assets.Employee"

    employee_id = factory.Sequence(lambda n: f"EMP{n:03d}")
    employee_name = factory.Faker("name")
    email = factory.LazyAttribute(lambda o: f"{o.employee_id.lower()}@example.com")
    role = "Engineer"
    department = "IT"


class PendingRequestFactory(DjangoModelFactory):
    """An assignment request awaiting approval."""

    class Meta:
        model = "assets.PendingRequest"

    request_type = "assign"
    asset = factory.SubFactory(AssetFactory)
    requested_by = factory.SubFactory(UserFactory, role="Operator")
    assign_to = "Jane Smith"
    employee_id = "EMP001"
    return_status = constants.STATUS_ASSIGNED


class OrderFactory(DjangoModelFactory):
    class Meta:
        model = "assets.Order"

    order_type = "Stock"
    asset_type = "Tablet"
    model = "Lenovo TB301XU"
    quantity = 1
    warehouse = "Hyderabad WH"
    sales_order = factory.Sequence(lambda n: f"{1000 + n}AB10")
    employee_id = "EMP001"
    employee_name = "Jane Smith"
    product = constants.DEFAULT_PRODUCT
    created_by = "factory@example.com"
    updated_by = "factory@example.com"


class DeviceFactory(DjangoModelFactory):
    """A unit recorded Inward at Hyderabad WH unless overridden."""

    class Meta:
        model = "assets.Device"

    asset_type = "Tablet"
    model = "Lenovo TB301XU"
    serial_number = factory.Sequence(lambda n: f"DEV{n:05d}")
    warehouse = "Hyderabad WH"
    status = constants.STATUS_AVAILABLE
    material_type = constants.MATERIAL_INWARD
    order = None

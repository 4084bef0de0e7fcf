"""Shared order vocabulary (v1).

The storefront and the vendor/courier/admin dashboards read these values from API
responses and notification rows. They should remain stable once shipped.
"""

from __future__ import annotations

from enum import Enum


class OrderStatusV1(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"


class PaymentStatusV1(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"


class PaymentModeV1(str, Enum):
    COD = "COD"


class ActorTypeV1(str, Enum):
    CUSTOMER = "customer"
    # Operational users: vendors, couriers, admins.
    USER = "user"
    SU = "su"


class UserRoleV1(str, Enum):
    VENDOR = "vendor"
    COURIER = "courier"
    ADMIN = "admin"


class RecipientTypeV1(str, Enum):
    CUSTOMER = "customer"
    USER = "user"


class NotificationTypeV1(str, Enum):
    ORDER = "Order"
    STATUS = "Status"

"""
Entity generators.

One generator per entity kind. Each derives its own sampler and Faker
stream from the root seed and its ``entity_name``.
"""

from .address_generator import AddressGenerator
from .audit_log_generator import AuditLogGenerator
from .base_generator import BaseGenerator
from .company_generator import CompanyGenerator
from .discount_generator import DiscountGenerator
from .inventory_generator import InventoryGenerator
from .maintenance_generator import MaintenanceGenerator
from .order_generator import OrderGenerator
from .payment_generator import PaymentGenerator
from .product_generator import ProductGenerator
from .refund_generator import RefundGenerator
from .shipment_generator import ShipmentGenerator
from .user_generator import UserGenerator

__all__ = [
    "BaseGenerator",
    "UserGenerator",
    "CompanyGenerator",
    "AddressGenerator",
    "ProductGenerator",
    "OrderGenerator",
    "InventoryGenerator",
    "ShipmentGenerator",
    "PaymentGenerator",
    "DiscountGenerator",
    "RefundGenerator",
    "MaintenanceGenerator",
    "AuditLogGenerator",
]

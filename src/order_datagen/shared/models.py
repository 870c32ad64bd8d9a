"""
Core data models for the order data generator.

This module contains the domain enumerations and every generated entity:
users, companies and branches (with baristas), addresses, products, orders
with line items, inventory movements, shipments with delivery attempts,
payments, discounts, returns and refunds, maintenance visits and audit logs.

Day-of-week values (``delivery_days``) use Sunday=0 .. Saturday=6.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# ================================
# ENUMERATIONS
# ================================


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    DELIVERY_FAILED = "Delivery Failed"


class PaymentStatus(str, Enum):
    """Payment status of an order."""

    PAID = "Paid"
    PENDING = "Pending"
    OVERDUE = "Overdue"


class Region(str, Enum):
    """Delivery region; each region has a fixed set of delivery weekdays."""

    A = "A"
    B = "B"


class UserRole(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    SALES = "Sales"
    SUPPORT = "Support"


class CompanyPaymentStatus(str, Enum):
    """Payment health band derived from a company's payment score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class PaymentDueType(str, Enum):
    IMMEDIATE = "immediate"
    DAYS_AFTER_ORDER = "days_after_order"
    MONTHLY_DATE = "monthly_date"
    BULK_SCHEDULE = "bulk_schedule"


class AnomalyType(str, Enum):
    """Kinds of abnormal business conditions that can be injected."""

    PAYMENT_DELAY = "payment_delay"
    DELIVERY_DELAY = "delivery_delay"
    STOCK_SHORTAGE = "stock_shortage"
    ORDER_CANCELLATION = "order_cancellation"
    MAINTENANCE_FAILURE = "maintenance_failure"
    DUPLICATE_ORDERS = "duplicate_orders"
    INVALID_DATA = "invalid_data"


class AnomalyClustering(str, Enum):
    """Whether anomalies are concentrated in windows or spread at random."""

    BURST = "burst"
    SPREAD = "spread"


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class MovementType(str, Enum):
    """Inventory ledger movement kinds."""

    ORDER_FULFILLMENT = "ORDER_FULFILLMENT"
    RESTOCK = "RESTOCK"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"


class ShipmentStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    FAILED = "failed"


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    RESCHEDULED = "rescheduled"


class ReturnStatus(str, Enum):
    COMPLETED = "Completed"
    PROCESSING = "Processing"
    REJECTED = "Rejected"


class RefundStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


class MaintenanceStatus(str, Enum):
    """Maintenance visit status."""

    COMPLETED = "Completed"
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    FOLLOW_UP_REQUIRED = "Follow-up Required"
    WAITING_FOR_PARTS = "Waiting for Parts"
    CANCELLED = "Cancelled"


class ResolutionStatus(str, Enum):
    SOLVED = "solved"
    PARTIAL = "partial"
    NOT_SOLVED = "not_solved"
    WAITING_PARTS = "waiting_parts"


class VisitType(str, Enum):
    PERIODIC = "periodic"
    CUSTOMER_REQUEST = "customer_request"


# ================================
# PEOPLE AND ORGANISATIONS
# ================================


class User(BaseModel):
    """Back-office user of the order-management system."""

    id: str = Field(..., description="User identifier (UUID)")
    email: str = Field(..., min_length=3, description="Unique login email")
    display_name: str
    role: UserRole
    photo_url: str | None = None
    created_at: datetime
    updated_at: datetime


class Contact(BaseModel):
    name: str
    position: str
    phone_numbers: list[str] = Field(default_factory=list)


class Barista(BaseModel):
    """Barista staff record embedded in a branch."""

    id: str
    branch_id: str
    name: str
    phone_number: str
    rating: float = Field(..., ge=1, le=5)
    notes: str | None = None


class Company(BaseModel):
    """Customer company with payment configuration and machine ownership."""

    id: str
    name: str
    industry: str
    parent_company_id: str | None = None
    is_branch: bool = False
    location: str
    region: Region
    delivery_days: list[int] = Field(..., description="Weekdays, Sunday=0")
    area: str
    status: Literal["Active", "Inactive", "New"]
    contacts: list[Contact] = Field(default_factory=list)
    tax_number: str
    email: str
    manager_name: str
    machine_owned: bool
    machine_leased: bool
    lease_monthly_cost: float | None = None
    maintenance_location: Literal["inside_cairo", "outside_cairo", "sahel"]
    warehouse_location: str | None = None
    warehouse_contacts: list[Contact] | None = None
    payment_method: Literal["transfer", "check"]
    payment_due_type: PaymentDueType
    payment_due_days: int | None = None
    payment_due_date: int | None = Field(
        None, ge=1, le=28, description="Day of month for monthly terms"
    )
    bulk_payment_schedule: dict[str, Any] | None = None
    current_payment_score: float = Field(..., ge=0, le=100)
    payment_status: CompanyPaymentStatus
    total_unpaid_orders: int = 0
    total_outstanding_amount: float = 0.0
    pending_bulk_payment_amount: float = 0.0
    performance_score: float
    last_12_months_revenue: float
    is_suspended: bool = False
    suspension_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    anomalies: list[AnomalyType] = Field(default_factory=list)


class Branch(BaseModel):
    """Branch of a company; persisted in the companies table with is_branch."""

    id: str
    company_id: str = Field(..., description="Owning company id")
    name: str
    contacts: list[Contact] = Field(default_factory=list)
    email: str
    location: str
    machine_owned: bool
    machine_leased: bool
    lease_monthly_cost: float | None = None
    performance_score: float
    warehouse_location: str | None = None
    warehouse_manager: str
    warehouse_phone: str
    region: Region
    delivery_days: list[int]
    warehouse_contacts: list[Contact] | None = None
    baristas: list[Barista] = Field(default_factory=list)
    area: str
    maintenance_location: Literal["inside_cairo", "outside_cairo", "sahel"]
    created_at: datetime


class Address(BaseModel):
    id: str
    entity_id: str
    entity_type: Literal["company", "branch"]
    type: Literal["primary", "warehouse", "billing"]
    street: str
    area: str
    city: str
    governorate: str
    postal_code: str | None = None
    latitude: float
    longitude: float
    delivery_area: Region
    contact_name: str | None = None
    contact_phone: str | None = None
    notes: str | None = None
    created_at: datetime


# ================================
# CATALOGUE
# ================================


class Product(BaseModel):
    """Catalogue product; variants reference their base product."""

    id: str
    name: str
    description: str
    is_variant: bool = False
    parent_product_id: str | None = None
    variant_name: str | None = None
    price: float = Field(..., gt=0)
    stock: int = Field(0, ge=0)
    image_url: str
    sku: str
    hint: str
    manufacturer_id: str
    category: str
    total_sold: int = Field(0, ge=0)
    created_at: datetime
    updated_at: datetime


# ================================
# ORDERS
# ================================


class OrderItem(BaseModel):
    id: str
    order_id: str
    product_id: str
    product_name: str
    quantity: int = Field(..., gt=0)
    price: float
    tax_id: str = "vat-14"
    tax_rate: float
    tax_amount: float
    discount_type: DiscountKind | None = None
    discount_value: int | None = None


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime


class Order(BaseModel):
    """Customer order with line items, totals, schedule and payment state."""

    id: str
    company_id: str
    branch_id: str | None = None
    company_name: str
    branch_name: str | None = None
    order_date: datetime
    delivery_date: datetime | None = None
    delivery_schedule: Region
    payment_due_date: datetime | None = None
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: float = Field(..., ge=0)
    total_tax: float = Field(..., ge=0)
    discount_type: DiscountKind | None = None
    discount_value: int | None = None
    discount_amount: float = 0.0
    grand_total: float
    items: list[OrderItem] = Field(default_factory=list)
    delivery_notes: str | None = None
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)
    is_potential_client: bool = False
    area: str
    expected_payment_date: datetime | None = None
    is_paid: bool = False
    paid_date: datetime | None = None
    days_overdue: int = 0
    cancellation_reason: str | None = None
    anomalies: list[AnomalyType] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_items_belong_to_order(self) -> "Order":
        """Line items must reference this order."""
        for item in self.items:
            if item.order_id != self.id:
                raise ValueError(
                    f"Order item {item.id} references order {item.order_id}, "
                    f"expected {self.id}"
                )
        return self


# ================================
# FULFILMENT AND FINANCE
# ================================


class InventoryMovement(BaseModel):
    """One entry of the per-product stock ledger."""

    id: str
    product_id: str
    movement_type: MovementType
    quantity: int
    previous_stock: int = Field(..., ge=0)
    new_stock: int = Field(..., ge=0)
    reference_id: str | None = None
    reference_type: Literal["order", "manual", "return"]
    created_at: datetime
    created_by: str
    notes: str | None = None


class DeliveryAttempt(BaseModel):
    id: str
    shipment_id: str
    attempt_number: int = Field(..., ge=1)
    attempt_date: datetime
    status: AttemptStatus
    failure_reason: str | None = None
    notes: str | None = None


class Shipment(BaseModel):
    id: str
    order_id: str
    status: ShipmentStatus
    scheduled_delivery_date: datetime
    actual_delivery_date: datetime | None = None
    attempts: list[DeliveryAttempt] = Field(default_factory=list)
    driver_name: str
    vehicle_id: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class Payment(BaseModel):
    id: str
    invoice_id: str
    order_id: str
    payment_date: datetime
    amount: float
    method: Literal["Bank Transfer", "Other"]
    reference: str
    notes: str | None = None
    marked_by: str
    created_at: datetime


class Discount(BaseModel):
    """Discount applied to an order or to one of its line items."""

    id: str
    order_id: str
    order_item_id: str | None = None
    type: DiscountKind
    value: int
    amount: float = Field(..., ge=0)
    reason: str
    applied_at: datetime
    applied_by: str


class Return(BaseModel):
    id: str
    order_id: str
    return_date: datetime
    reason: str
    status: ReturnStatus
    created_at: datetime
    updated_at: datetime


class Refund(BaseModel):
    id: str
    return_id: str
    order_id: str
    amount: float = Field(..., ge=0)
    status: RefundStatus
    reason: str | None = None
    processed_at: datetime | None = None
    processed_by: str | None = None
    created_at: datetime


# ================================
# MAINTENANCE AND AUDIT
# ================================


class SparePart(BaseModel):
    name: str
    quantity: int = Field(..., ge=1)
    price: float
    paid_by: Literal["Client", "Company"]


class MaintenanceService(BaseModel):
    name: str
    cost: float
    quantity: int = 1
    paid_by: Literal["Client", "Company"]


class MaintenanceVisit(BaseModel):
    """Machine maintenance visit, optionally a follow-up of an earlier visit."""

    id: str
    branch_id: str
    company_id: str
    branch_name: str
    company_name: str
    date: datetime
    resolution_date: datetime | None = None
    scheduled_date: datetime
    actual_arrival_date: datetime | None = None
    delay_days: int = Field(0, ge=0)
    delay_reason: str | None = None
    is_significant_delay: bool = False
    technician_name: str
    visit_type: VisitType
    maintenance_notes: str
    barista_id: str | None = None
    barista_name: str | None = None
    barista_recommendations: str | None = None
    problem_occurred: bool
    problem_reason: list[str] | None = None
    resolution_status: ResolutionStatus | None = None
    non_resolution_reason: str | None = None
    spare_parts: list[SparePart] = Field(default_factory=list)
    services: list[MaintenanceService] = Field(default_factory=list)
    overall_report: str
    report_signed_by: str
    supervisor_witness: str | None = None
    status: MaintenanceStatus
    root_visit_id: str | None = None
    total_visits: int = Field(1, ge=1)
    total_cost: float
    resolution_time_days: int | None = None
    labor_cost: float
    created_at: datetime
    updated_at: datetime
    anomalies: list[AnomalyType] = Field(default_factory=list)


class AuditLog(BaseModel):
    id: str
    user_id: str
    action: str = Field(..., description="Dotted action name, e.g. order.created")
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)
    entity_type: str | None = None
    entity_id: str | None = None
    created_at: datetime

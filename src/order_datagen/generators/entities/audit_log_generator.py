"""
Audit trail generation.

Derives audit entries from the entities generated earlier in the run
(order lifecycle, company and product changes, maintenance visits, user
sessions) and pads the trail with system events.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import (
    ENTITY_ACTIONS,
    SYSTEM_ACTOR_ID,
    SYSTEM_LOG_COUNT,
)
from order_datagen.shared.models import (
    AuditLog,
    Company,
    MaintenanceStatus,
    MaintenanceVisit,
    Order,
    Payment,
    PaymentStatus,
    Product,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


class AuditLogGenerator(BaseGenerator[AuditLog]):
    """Generates a time-ordered audit trail over the run's entities."""

    entity_name = "auditLogs"

    def __init__(
        self,
        config: GeneratorConfig,
        scenario: ScenarioProfile,
        users: list[User],
        companies: list[Company],
        orders: list[Order],
        products: list[Product],
        maintenance_visits: list[MaintenanceVisit],
        seed: int | None = None,
        payments: list[Payment] | None = None,
    ):
        super().__init__(config, scenario, seed)
        self.users = users
        self.payment_references = {p.order_id: p.reference for p in payments or []}
        self.companies = companies
        self.orders = orders
        self.products = products
        self.maintenance_visits = maintenance_visits

    def generate(self, count: int) -> list[AuditLog]:
        """
        Generate the audit trail sorted by timestamp.

        Args:
            count: Maximum number of entries to return

        Returns:
            The earliest ``count`` entries
        """
        logs = []
        if self.users:
            logs.extend(self._order_logs())
            logs.extend(self._company_logs())
            logs.extend(self._product_logs())
            logs.extend(self._maintenance_logs())
            logs.extend(self._user_logs())
        else:
            logger.warning("No users generated, audit trail holds system entries only")
        logs.extend(self._system_logs())
        logs.sort(key=lambda log: log.timestamp)

        logger.debug(f"Built {len(logs)} audit entries, returning {min(count, len(logs))}")
        return logs[:count]

    def _log(
        self,
        user_id: str,
        action: str,
        timestamp: datetime,
        details: dict[str, Any],
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> AuditLog:
        return AuditLog(
            id=self.generate_id(),
            user_id=user_id,
            action=action,
            timestamp=timestamp,
            details=details,
            entity_type=entity_type,
            entity_id=entity_id,
            created_at=timestamp,
        )

    # ------------------------------------------------------------------
    # Per-entity trails
    # ------------------------------------------------------------------

    def _order_logs(self) -> list[AuditLog]:
        logs = []
        for order in self.orders:
            user = self.sampler.pick_one(self.users)
            logs.append(
                self._log(
                    user.id,
                    "order.created",
                    order.order_date,
                    {
                        "order_id": order.id,
                        "company_id": order.company_id,
                        "grand_total": order.grand_total,
                    },
                    "order",
                    order.id,
                )
            )
            # The first history entry is the creation itself
            for entry in order.status_history[1:]:
                logs.append(
                    self._log(
                        user.id,
                        "order.status_changed",
                        entry.timestamp,
                        {"order_id": order.id, "new_status": entry.status.value},
                        "order",
                        order.id,
                    )
                )
            if order.payment_status == PaymentStatus.PAID and order.paid_date:
                logs.append(
                    self._log(
                        user.id,
                        "order.payment_marked",
                        order.paid_date,
                        {
                            "order_id": order.id,
                            "amount": order.grand_total,
                            "reference": self.payment_references.get(order.id),
                        },
                        "order",
                        order.id,
                    )
                )
        return logs

    def _company_logs(self) -> list[AuditLog]:
        logs = []
        for company in self.companies:
            user = self.sampler.pick_one(self.users)
            logs.append(
                self._log(
                    user.id,
                    "company.created",
                    company.created_at,
                    {
                        "company_id": company.id,
                        "name": company.name,
                        "region": company.region.value,
                    },
                    "company",
                    company.id,
                )
            )
            if self.sampler.random() > 0.5:
                logs.append(
                    self._log(
                        user.id,
                        "company.updated",
                        company.created_at + timedelta(hours=self.sampler.uniform_int(24, 720)),
                        {"company_id": company.id, "fields": ["contacts", "email"]},
                        "company",
                        company.id,
                    )
                )
            if company.is_suspended:
                logs.append(
                    self._log(
                        user.id,
                        "company.suspended",
                        max(company.created_at, self.random_date_in_range()),
                        {"company_id": company.id, "reason": company.suspension_reason},
                        "company",
                        company.id,
                    )
                )
        return logs

    def _product_logs(self) -> list[AuditLog]:
        logs = []
        for product in self.products:
            user = self.sampler.pick_one(self.users)
            logs.append(
                self._log(
                    user.id,
                    "product.created",
                    product.created_at,
                    {"product_id": product.id, "name": product.name, "price": product.price},
                    "product",
                    product.id,
                )
            )
            if self.sampler.random() > 0.7:
                logs.append(
                    self._log(
                        user.id,
                        "product.stock_adjusted",
                        self.random_date_in_range(),
                        {
                            "product_id": product.id,
                            "adjustment": self.sampler.uniform_int(-50, 200),
                            "new_stock": product.stock,
                        },
                        "product",
                        product.id,
                    )
                )
        return logs

    def _maintenance_logs(self) -> list[AuditLog]:
        logs = []
        for visit in self.maintenance_visits:
            user = self.sampler.pick_one(self.users)
            logs.append(
                self._log(
                    user.id,
                    "maintenance.scheduled",
                    visit.date,
                    {
                        "visit_id": visit.id,
                        "company_id": visit.company_id,
                        "technician_name": visit.technician_name,
                    },
                    "maintenance",
                    visit.id,
                )
            )
            if visit.status == MaintenanceStatus.COMPLETED:
                logs.append(
                    self._log(
                        user.id,
                        "maintenance.completed",
                        visit.resolution_date or visit.date + timedelta(hours=4),
                        {
                            "visit_id": visit.id,
                            "resolution_status": visit.resolution_status.value
                            if visit.resolution_status
                            else None,
                            "total_cost": visit.total_cost,
                        },
                        "maintenance",
                        visit.id,
                    )
                )
        return logs

    def _user_logs(self) -> list[AuditLog]:
        """Login/logout pairs: 5-19 sessions per user lasting 30-479 minutes."""
        logs = []
        for user in self.users:
            for _ in range(self.sampler.uniform_int(5, 20)):
                login = self.random_business_hour_date()
                duration = self.sampler.uniform_int(30, 480)
                logs.append(
                    self._log(
                        user.id,
                        "user.login",
                        login,
                        {"user_id": user.id, "email": user.email, "ip_address": self.faker.ipv4()},
                        "user",
                        user.id,
                    )
                )
                logs.append(
                    self._log(
                        user.id,
                        "user.logout",
                        login + timedelta(minutes=duration),
                        {"user_id": user.id, "session_duration": duration},
                        "user",
                        user.id,
                    )
                )
        return logs

    def _system_logs(self) -> list[AuditLog]:
        admin = next((user for user in self.users if user.role == UserRole.ADMIN), None)
        actor_id = admin.id if admin else SYSTEM_ACTOR_ID
        logs = []
        for _ in range(SYSTEM_LOG_COUNT):
            action = self.sampler.pick_one(ENTITY_ACTIONS["system"])
            logs.append(
                self._log(
                    actor_id,
                    action,
                    self.random_date_in_range(),
                    self._system_details(action),
                    "system",
                )
            )
        return logs

    def _system_details(self, action: str) -> dict[str, Any]:
        if action == "system.backup_created":
            return {"backup_size": f"{self.sampler.uniform_int(100, 500)}MB", "backup_type": "full"}
        if action == "system.report_generated":
            return {
                "report_type": self.sampler.pick_one(["daily", "weekly", "monthly"]),
                "format": "pdf",
            }
        if action == "system.notification_sent":
            return {"notification_type": "email", "recipient_count": self.sampler.uniform_int(1, 50)}
        if action == "system.sync_completed":
            return {
                "synced_records": self.sampler.uniform_int(100, 10_000),
                "duration_ms": self.sampler.uniform_int(1000, 30_000),
            }
        if action == "system.error_logged":
            return {
                "error_code": f"ERR_{self.sampler.uniform_int(0, 1000)}",
                "severity": self.sampler.pick_one(["low", "medium", "high"]),
            }
        return {}

"""
Referential integrity validator.

Validates foreign key relationships between generated entities.
Every reference must resolve to an entity produced by an earlier stage.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from order_datagen.generators.reference_data import SYSTEM_ACTOR_ID

logger = logging.getLogger(__name__)

MAX_REPORTED_PER_RELATION = 5


class ReferentialIntegrityValidator:
    """
    Validates foreign key relationships between generated entities.

    Register the ids of each parent collection, then check the children.
    Violations are collected as messages; nothing is raised.
    """

    def __init__(self) -> None:
        """Initialize with empty reference collections."""
        self._user_ids: set[str] = set()
        self._company_ids: set[str] = set()
        self._branch_ids: set[str] = set()
        self._product_ids: set[str] = set()
        self._order_ids: set[str] = set()
        self._return_ids: set[str] = set()

    def register_user_ids(self, user_ids: Iterable[str]) -> None:
        """Register valid user IDs."""
        self._user_ids.update(user_ids)

    def register_company_ids(self, company_ids: Iterable[str]) -> None:
        """Register valid company IDs."""
        self._company_ids.update(company_ids)

    def register_branch_ids(self, branch_ids: Iterable[str]) -> None:
        """Register valid branch IDs."""
        self._branch_ids.update(branch_ids)

    def register_product_ids(self, product_ids: Iterable[str]) -> None:
        """Register valid product IDs."""
        self._product_ids.update(product_ids)

    def register_order_ids(self, order_ids: Iterable[str]) -> None:
        """Register valid order IDs."""
        self._order_ids.update(order_ids)

    def register_return_ids(self, return_ids: Iterable[str]) -> None:
        """Register valid return IDs."""
        self._return_ids.update(return_ids)

    def validate_user_fk(self, user_id: str) -> bool:
        return user_id in self._user_ids

    def validate_company_fk(self, company_id: str) -> bool:
        return company_id in self._company_ids

    def validate_branch_fk(self, branch_id: str | None) -> bool:
        """Branches are optional; a missing branch id is valid."""
        return branch_id is None or branch_id in self._branch_ids

    def validate_site_fk(self, site_id: str) -> bool:
        """A site is either a branch or a company acting as its own branch."""
        return site_id in self._branch_ids or site_id in self._company_ids

    def validate_product_fk(self, product_id: str) -> bool:
        return product_id in self._product_ids

    def validate_order_fk(self, order_id: str) -> bool:
        return order_id in self._order_ids

    def validate_return_fk(self, return_id: str) -> bool:
        return return_id in self._return_ids

    def register_dataset(self, dataset: Mapping[str, Sequence[Any]]) -> None:
        """Register parent ids from a mapping of entity name to records."""
        self.register_user_ids(u.id for u in dataset.get("users", []))
        self.register_company_ids(c.id for c in dataset.get("companies", []))
        self.register_branch_ids(b.id for b in dataset.get("branches", []))
        self.register_product_ids(p.id for p in dataset.get("products", []))
        self.register_order_ids(o.id for o in dataset.get("orders", []))
        self.register_return_ids(r.id for r in dataset.get("returns", []))

    def validate_dataset(self, dataset: Mapping[str, Sequence[Any]]) -> list[str]:
        """
        Register the dataset's parents and check every child reference.

        Args:
            dataset: Entity name (``users``, ``companies``, ``orders`` ...)
                to generated records

        Returns:
            Human-readable violation messages, empty when the dataset is
            consistent
        """
        self.register_dataset(dataset)
        checks = [
            (
                "branches.company_id",
                dataset.get("branches", []),
                lambda b: self.validate_company_fk(b.company_id),
            ),
            (
                "addresses.entity_id",
                dataset.get("addresses", []),
                lambda a: self.validate_site_fk(a.entity_id),
            ),
            (
                "products.parent_product_id",
                dataset.get("products", []),
                lambda p: p.parent_product_id is None
                or self.validate_product_fk(p.parent_product_id),
            ),
            (
                "orders.company_id",
                dataset.get("orders", []),
                lambda o: self.validate_company_fk(o.company_id),
            ),
            (
                "orders.branch_id",
                dataset.get("orders", []),
                lambda o: self.validate_branch_fk(o.branch_id),
            ),
            (
                "order_items.product_id",
                [item for order in dataset.get("orders", []) for item in order.items],
                lambda i: self.validate_product_fk(i.product_id),
            ),
            (
                "order_items.order_id",
                [item for order in dataset.get("orders", []) for item in order.items],
                lambda i: self.validate_order_fk(i.order_id),
            ),
            (
                "inventory.product_id",
                dataset.get("inventory", []),
                lambda m: self.validate_product_fk(m.product_id),
            ),
            (
                "shipments.order_id",
                dataset.get("shipments", []),
                lambda s: self.validate_order_fk(s.order_id),
            ),
            (
                "payments.order_id",
                dataset.get("payments", []),
                lambda p: self.validate_order_fk(p.order_id),
            ),
            (
                "discounts.order_id",
                dataset.get("discounts", []),
                lambda d: self.validate_order_fk(d.order_id),
            ),
            (
                "returns.order_id",
                dataset.get("returns", []),
                lambda r: self.validate_order_fk(r.order_id),
            ),
            (
                "refunds.return_id",
                dataset.get("refunds", []),
                lambda r: self.validate_return_fk(r.return_id),
            ),
            (
                "maintenance.company_id",
                dataset.get("maintenanceVisits", []),
                lambda v: self.validate_company_fk(v.company_id),
            ),
            (
                "maintenance.branch_id",
                dataset.get("maintenanceVisits", []),
                lambda v: self.validate_site_fk(v.branch_id),
            ),
            (
                "audit_logs.user_id",
                dataset.get("auditLogs", []),
                lambda log: log.user_id == SYSTEM_ACTOR_ID or self.validate_user_fk(log.user_id),
            ),
        ]

        violations = []
        for relation, records, is_valid in checks:
            broken = [record for record in records if not is_valid(record)]
            if not broken:
                continue
            sample = ", ".join(str(record.id) for record in broken[:MAX_REPORTED_PER_RELATION])
            violations.append(f"{relation}: {len(broken)} dangling reference(s) (e.g. {sample})")

        for violation in violations:
            logger.warning(f"Referential integrity: {violation}")
        return violations

    def get_validation_summary(self) -> dict[str, int]:
        """Get summary of registered IDs for validation."""
        return {
            "users": len(self._user_ids),
            "companies": len(self._company_ids),
            "branches": len(self._branch_ids),
            "products": len(self._product_ids),
            "orders": len(self._order_ids),
            "returns": len(self._return_ids),
        }

"""
Back-office user generation.
"""

import logging
import re

from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import USER_EMAIL_DOMAIN, USER_ROLE_WEIGHTS
from order_datagen.shared.models import User, UserRole

logger = logging.getLogger(__name__)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", ".", value.lower()).strip(".")


class UserGenerator(BaseGenerator[User]):
    """Generates users with weighted roles and unique emails."""

    entity_name = "users"

    def generate(self, count: int) -> list[User]:
        users: list[User] = []
        seen_emails: set[str] = set()

        for i in range(count):
            users.append(self._generate_user(seen_emails))
            self.log_progress(i + 1, count)

        return users

    def _generate_user(self, seen_emails: set[str]) -> User:
        display_name = self.faker.name()
        role = UserRole(self.sampler.weighted_choice(USER_ROLE_WEIGHTS))

        base = _slug(display_name) or "user"
        email = f"{base}@{USER_EMAIL_DOMAIN}"
        suffix = 2
        while email in seen_emails:
            email = f"{base}{suffix}@{USER_EMAIL_DOMAIN}"
            suffix += 1
        seen_emails.add(email)

        created_at = self.random_date_in_range()
        updated_at = min(
            self.end_date, self.add_days(created_at, self.sampler.uniform_int(0, 30))
        )

        return User(
            id=self.generate_id(),
            email=email,
            display_name=display_name,
            role=role,
            photo_url=self.faker.image_url(width=128, height=128)
            if self.sampler.random() > 0.3
            else None,
            created_at=created_at,
            updated_at=updated_at,
        )

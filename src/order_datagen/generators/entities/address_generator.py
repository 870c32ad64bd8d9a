"""
Structured address generation for companies and branches.
"""

import logging
import math

from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import (
    AREA_TO_CITY,
    AREAS,
    CITY_COORDINATES,
    CITY_TO_GOVERNORATE,
    STREET_NAMES,
    STREET_SUFFIXES,
    WAREHOUSE_NOTES,
)
from order_datagen.shared.models import Address, Branch, Company, Region

logger = logging.getLogger(__name__)

DEFAULT_CITY = "Cairo"


class AddressGenerator(BaseGenerator[Address]):
    """Generates geo-coded Egyptian addresses."""

    entity_name = "addresses"

    def generate(self, count: int) -> list[Address]:
        """Standalone addresses attached to freshly minted entity ids."""
        addresses = []
        for i in range(count):
            entity_type = "company" if self.sampler.random() > 0.3 else "branch"
            addresses.append(
                self.generate_address_for_entity(
                    self.generate_id(), entity_type, "primary", created_at=self.start_date
                )
            )
            self.log_progress(i + 1, count)
        return addresses

    def generate_for_entities(
        self, companies: list[Company], branches: list[Branch]
    ) -> list[Address]:
        """
        One primary address per company and branch, plus a warehouse address
        for roughly 30% of them.

        Addresses reuse the entity's area and delivery region so that the
        structured address agrees with the entity record.
        """
        entities: list[tuple[Company | Branch, str]] = [(c, "company") for c in companies]
        entities.extend((b, "branch") for b in branches)

        addresses = []
        for entity, entity_type in entities:
            addresses.append(
                self.generate_address_for_entity(
                    entity.id,
                    entity_type,
                    "primary",
                    area=entity.area,
                    region=entity.region,
                    created_at=entity.created_at,
                )
            )
            if self.sampler.random() > 0.7:
                addresses.append(
                    self.generate_address_for_entity(
                        entity.id,
                        entity_type,
                        "warehouse",
                        area=entity.area,
                        region=entity.region,
                        created_at=entity.created_at,
                    )
                )

        logger.debug(f"Generated {len(addresses)} addresses for {len(entities)} entities")
        return addresses

    def generate_address_for_entity(
        self,
        entity_id: str,
        entity_type: str,
        address_type: str,
        area: str | None = None,
        region: Region | None = None,
        created_at=None,
    ) -> Address:
        area = area or self.sampler.pick_one(AREAS)
        city = AREA_TO_CITY.get(area, DEFAULT_CITY)
        latitude, longitude = self._coordinates(city)
        if region is None:
            region = Region(
                self.sampler.weighted_choice(
                    self.scenario.distributions.region_distribution
                )
            )
        is_warehouse = address_type == "warehouse"

        return Address(
            id=self.generate_id(),
            entity_id=entity_id,
            entity_type=entity_type,
            type=address_type,
            street=self._street(),
            area=area,
            city=city,
            governorate=CITY_TO_GOVERNORATE.get(city, DEFAULT_CITY),
            postal_code=str(math.floor(self.sampler.random() * 90_000) + 10_000),
            latitude=latitude,
            longitude=longitude,
            delivery_area=region,
            contact_name=self.faker.name() if is_warehouse else None,
            contact_phone=self.egyptian_phone() if is_warehouse else None,
            notes=WAREHOUSE_NOTES if is_warehouse else None,
            created_at=created_at or self.random_date_in_range(),
        )

    def _street(self) -> str:
        number = math.floor(self.sampler.random() * 200) + 1
        name = self.sampler.pick_one(STREET_NAMES)
        suffix = self.sampler.pick_one(STREET_SUFFIXES)
        return f"{number} {name} {suffix}"

    def _coordinates(self, city: str) -> tuple[float, float]:
        """Random point within the city's radius, rounded to 6 places."""
        lat, lng, radius = CITY_COORDINATES.get(city, CITY_COORDINATES[DEFAULT_CITY])
        angle = self.sampler.random() * 2 * math.pi
        distance = self.sampler.random() * radius
        return (
            self.round(lat + distance * math.cos(angle), 6),
            self.round(lng + distance * math.sin(angle), 6),
        )

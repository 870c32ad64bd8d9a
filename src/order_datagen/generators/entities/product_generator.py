"""
Product catalogue generation.

About 60% of the catalogue is base products; the rest are size, roast or
grind variants of randomly chosen base products. Sales and stock follow a
Zipf curve over a shuffled ranking so best sellers are spread across
categories.
"""

import logging
import math

from order_datagen.generators.distributions import DEFAULT_ZIPF_ALPHA
from order_datagen.generators.entities.base_generator import BaseGenerator
from order_datagen.generators.reference_data import (
    BASE_SALES_PER_PRODUCT,
    CATEGORY_PRICE_RANGES,
    COFFEE_ORIGINS,
    DESCRIPTION_ADJECTIVES,
    GRIND_SIZES,
    MANUFACTURERS,
    PACKAGE_SIZE_MULTIPLIERS,
    PRODUCT_CATEGORIES,
    PRODUCT_NAME_PARTS,
    ROAST_LEVELS,
)
from order_datagen.shared.models import Product

logger = logging.getLogger(__name__)

BASE_PRODUCT_SHARE = 0.6
DEFAULT_PRICE_RANGE = (50, 500)


class ProductGenerator(BaseGenerator[Product]):
    """Generates base products, their variants and popularity metrics."""

    entity_name = "products"

    def generate(self, count: int) -> list[Product]:
        products: list[Product] = []
        base_count = math.ceil(count * BASE_PRODUCT_SHARE)
        variant_count = count - base_count

        for _ in range(base_count):
            products.append(self._base_product())

        with_variants = self.sampler.pick_random(
            list(products), min(variant_count, len(products))
        )
        for base in with_variants:
            for _ in range(self.sampler.uniform_int(1, 4)):
                if len(products) >= count:
                    break
                products.append(self._variant(base))

        self._assign_popularity(products)
        self.log_progress(len(products), count)
        return products

    @staticmethod
    def by_popularity(products: list[Product]) -> list[Product]:
        """Products ordered best seller first."""
        return sorted(products, key=lambda p: p.total_sold, reverse=True)

    def _categories(self) -> list[str]:
        overrides = self.scenario.profile_overrides
        if overrides is not None and overrides.product_categories:
            return list(overrides.product_categories)
        return PRODUCT_CATEGORIES

    def _base_product(self) -> Product:
        category = self.sampler.pick_one(self._categories())
        name = self._product_name(category)
        manufacturer = self.sampler.pick_one(MANUFACTURERS)
        low, high = CATEGORY_PRICE_RANGES.get(category, DEFAULT_PRICE_RANGE)
        created_at = self.random_date_in_range()

        return Product(
            id=self.generate_id(),
            name=name,
            description=self._description(name, category),
            price=self.round(self.sampler.uniform(low, high)),
            image_url=self.faker.image_url(width=400, height=400),
            sku=self._sku(category),
            hint=category,
            manufacturer_id=manufacturer["id"],
            category=category,
            created_at=created_at,
            updated_at=created_at,
        )

    def _variant(self, base: Product) -> Product:
        variant_type = self.sampler.pick_one(["size", "roast", "grind"])
        if variant_type == "size":
            variant_name = self.sampler.pick_one(list(PACKAGE_SIZE_MULTIPLIERS))
            multiplier = PACKAGE_SIZE_MULTIPLIERS[variant_name]
        elif variant_type == "roast":
            variant_name = f"{self.sampler.pick_one(ROAST_LEVELS)} Roast"
            multiplier = self.sampler.uniform(0.95, 1.15)
        else:
            variant_name = self.sampler.pick_one(GRIND_SIZES)
            multiplier = 1.05

        return base.model_copy(
            update={
                "id": self.generate_id(),
                "description": f"{base.description} - {variant_name}",
                "is_variant": True,
                "parent_product_id": base.id,
                "variant_name": variant_name,
                "price": self.round(base.price * multiplier),
                "sku": f"{base.sku}-{variant_name[:3].upper()}",
            }
        )

    def _product_name(self, category: str) -> str:
        if category in ("Coffee Beans", "Ground Coffee"):
            return self.sampler.pick_one(COFFEE_ORIGINS)
        if category == "Espresso":
            return f"{self.faker.word().capitalize()} Espresso Blend"
        if category == "Cold Brew":
            return f"{self.faker.color_name()} Label Cold Brew"
        parts = PRODUCT_NAME_PARTS.get(category)
        if parts is None:
            return self.faker.catch_phrase()
        return " ".join(self.sampler.pick_one(options) for options in parts)

    def _description(self, name: str, category: str) -> str:
        adjective = self.sampler.pick_one(DESCRIPTION_ADJECTIVES)
        return (
            f"{adjective[0].upper()}{adjective[1:]} {category.lower()} - {name}. "
            f"{self.faker.sentence()}"
        )

    def _sku(self, category: str) -> str:
        number = math.floor(self.sampler.random() * 100_000)
        return f"{category[:3].upper()}-{number:05d}"

    def _assign_popularity(self, products: list[Product]) -> None:
        """Zipf-ranked sales; stock is 10-40% of sales with a floor of 10."""
        total_volume = len(products) * BASE_SALES_PER_PRODUCT
        for rank, product in enumerate(self.sampler.shuffle(products), start=1):
            sales = math.floor(total_volume / math.pow(rank, DEFAULT_ZIPF_ALPHA))
            stock = math.floor(sales * self.sampler.uniform(0.1, 0.4))
            product.total_sold = sales
            product.stock = max(10, stock)

"""
Validators for generated datasets.

Currently covers referential integrity between the generated entities.
"""

from .foreign_key import ReferentialIntegrityValidator

__all__ = ["ReferentialIntegrityValidator"]

"""
Catalog module - read-only program and country lookups.
"""

from app.modules.catalog.models import Country, Program

__all__ = ["Country", "Program"]

"""Database models"""

from catalog_search.models.catalog_item import CatalogItem

__all__ = ["CatalogItem"]

"""
Catalog item model.

A catalog record is a short text entry (name + description) with an optional
image reference. The search service only reads this table; its trigram and
full-text primitives come from the pg_trgm and fuzzystrmatch extensions.
"""

from catalog_search.core.database import Base
from sqlalchemy import Column, Index, Integer, String, Text


class CatalogItem(Base):
    """Searchable catalog record."""

    __tablename__ = "food_nutrition"

    id = Column(Integer, primary_key=True)
    food_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(String(1024), nullable=True)

    __table_args__ = (
        Index(
            "ix_food_nutrition_food_name_trgm",
            "food_name",
            postgresql_using="gin",
            postgresql_ops={"food_name": "gin_trgm_ops"},
        ),
        Index(
            "ix_food_nutrition_description_trgm",
            "description",
            postgresql_using="gin",
            postgresql_ops={"description": "gin_trgm_ops"},
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr utility
        return f"<CatalogItem(id={self.id}, food_name={self.food_name!r})>"

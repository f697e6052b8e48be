"""
Search response schemas.

`ResultPage` is the only object that crosses the response cache boundary; it is
stored as its JSON form and validated back on a cache hit.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class SearchResultItem(BaseModel):
    """One scored, highlighted catalog record."""

    id: Union[int, str]
    food_name: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    rank: float = 0.0
    name_similarity: float = 0.0
    desc_similarity: float = 0.0
    exact_name_match: bool = False
    prefix_name_match: bool = False
    prefix_desc_match: bool = False
    name_edit_distance: Optional[int] = None
    desc_edit_distance: Optional[int] = None

    strategy: Optional[str] = Field(None, description="Retrieval strategy that produced the record")
    composite_score: float
    food_name_highlight: Optional[str] = None
    description_highlight: Optional[str] = None


class ResultPage(BaseModel):
    """Paginated search response body."""

    total: int = Field(..., description="Number of results that survived scoring on this page")
    count: int = Field(..., description="Length of results")
    limit: int
    offset: int
    results: List[SearchResultItem]
    served_from_cache: bool = False
    estimated_total: Optional[int] = Field(
        None,
        description="Advisory count of catalog records matching the primary predicate",
    )

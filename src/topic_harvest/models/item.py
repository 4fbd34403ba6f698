"""
Item and page location models.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Item(BaseModel):
    """One content item found on a page of the collection.

    Items are created once by extraction and never mutated. ``sort_key`` is
    ``page_number * K + position_on_page``, so items from an earlier page
    always sort before items from a later one.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Identity unique within one harvest session")
    page_number: int = Field(..., ge=1, description="Page the item was found on")
    sort_key: int = Field(..., ge=0, description="Display order key")
    rendered_content: str = Field(default="", description="Markup shown to the reader")
    searchable_text: str = Field(default="", description="Normalized lower-case text for keyword matching")
    author_key: str = Field(..., min_length=1, description="Stable author identity")
    author_name: str = Field(default="", description="Author display name")

    def __repr__(self) -> str:
        return f"<Item(id='{self.id}', page={self.page_number}, author='{self.author_key}')>"


class PageInfo(BaseModel):
    """Where the reader is inside the collection."""

    model_config = ConfigDict(frozen=True)

    base_address: str = Field(..., description="Address of the collection without page suffix")
    total_pages: int = Field(default=1, ge=1)
    current_page: int = Field(default=1, ge=1)
    variant: Optional[str] = Field(None, description="View variant carried between pages")

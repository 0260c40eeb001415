from __future__ import annotations

from typing import List, Union

from pydantic import BaseModel, Field


# -----------------------------------------------------------------------------
# Query parts
# -----------------------------------------------------------------------------
class Sort(BaseModel):
    field: str = Field(
        ...,
        description="Name of the field to sort by"
    )
    direction: bool = Field(
        True,
        description="True for ascending, False for descending"
    )


class Filter(BaseModel):
    field: str = Field(
        ...,
        description="Query key the filter is sent under"
    )
    multiple: bool = Field(
        False,
        description="Serialize as key[]=value (array-style parameter)"
    )
    value: str = Field(
        ...,
        description="Raw filter value"
    )


class FlatOption(BaseModel):
    """One key/value pair of an encoded query string."""
    key: str
    value: str
    multiple: bool = False


# -----------------------------------------------------------------------------
# Options
# -----------------------------------------------------------------------------
class CollectionOptions(BaseModel):
    """Query state of a plain collection: filters only."""
    filters: List[Filter] = Field(
        default_factory=list,
        description="Filters in the order they appear in the query string"
    )


class PageOptions(CollectionOptions):
    """Query state of a paged collection."""
    page: int = Field(
        1,
        description="1-based page number"
    )
    limit: int = Field(
        10,
        description="Items per page"
    )
    sort: List[Sort] = Field(
        default_factory=list,
        description="Sort fields in priority order"
    )


Options = Union[PageOptions, CollectionOptions]

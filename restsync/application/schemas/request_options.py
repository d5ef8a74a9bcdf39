"""Pydantic DTO for the caller-facing request options."""

from typing import Any

from pydantic import BaseModel, Field


class RequestOptions(BaseModel):
    """Options accepted by list/view/save/validate/delete.

    Only explicitly given fields override an operation's defaults, so
    ``RequestOptions(page_size=None)`` ("no limit") differs from
    ``RequestOptions()`` ("use the default page size").

    ``params``, ``transport`` and ``data`` are merged key by key into the
    defaults instead of replacing them.
    """

    url: str | None = Field(None, description="Overrides the operation's endpoint")
    expand: str | list[str] = Field("", description="Relations to expand, e.g. 'author.profile,tags'")
    expand_fields: str | list[str] = Field(
        "", description="Extra fields to request; appended to expand, never loaded as relations"
    )
    expand_name: str = Field("expand", description="Query parameter carrying the expansion")
    filter: dict[str, Any] | None = Field(None, description="Serialized as filter[field]=value")
    sort: str | None = Field(None, description="Comma-separated fields, '-' prefix for descending")
    page: int | None = Field(None, description="1-based page number")
    page_size: int | None = Field(None, description="Records per page; 0 is sent, None is omitted")
    params: dict[str, Any] = Field(default_factory=dict)
    transport: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict, description="Body overrides for save")

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}

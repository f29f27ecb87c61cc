"""Tab document schema exchanged with the browser extension."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Tab(BaseModel):
    favIconUrl: str
    muted: Optional[bool] = None
    pinned: bool
    title: str
    url: str


class TabGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    color: str
    expand: bool
    pinned: bool
    tabs: list[Tab]
    tags: list[str]
    time: int
    title: str
    titleEditing: Optional[bool] = None
    updatedAt: int


class Tabs(BaseModel):
    tabs: list[TabGroup]
    token: str = ""


class UpdateResponse(BaseModel):
    message: str
    updated_at: int


_tab_groups = TypeAdapter(list[TabGroup])


def dump_tab_groups(groups: list[TabGroup]) -> bytes:
    """Compact JSON for the stored document, using the ``_id`` field name."""
    return _tab_groups.dump_json(groups, by_alias=True)


def load_tab_groups(content: bytes) -> list[TabGroup]:
    """Parse a stored document. Raises ``pydantic.ValidationError`` if corrupt."""
    return _tab_groups.validate_json(content)

"""Lightweight views of groups and devices returned by the authorization service."""

from typing import Optional

from pydantic import BaseModel


class GroupSummary(BaseModel):
    """A device group a user may browse. group_id "ALL" is the virtual group."""
    group_id: str
    name: str

    class Config:
        frozen = True


class DeviceSummary(BaseModel):
    """A device a user may view."""
    device_id: str
    unique_id: Optional[str] = None
    name: str = ""
    short_name: str = ""

    class Config:
        from_attributes = True
        frozen = True

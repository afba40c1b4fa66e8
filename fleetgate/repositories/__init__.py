"""Data access repositories."""

from .base import BaseRepository, AccountScopedRepository, storage_errors
from .account_repository import AccountRepository, UserRepository
from .device_repository import DeviceRepository, DeviceGroupRepository
from .group_list_repository import GroupListRepository

__all__ = [
    "BaseRepository",
    "AccountScopedRepository",
    "storage_errors",
    "AccountRepository",
    "UserRepository",
    "DeviceRepository",
    "DeviceGroupRepository",
    "GroupListRepository",
]

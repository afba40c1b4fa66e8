"""Database models."""

from .account import Account
from .device import Device, DeviceGroup, DeviceListEntry, DEVICE_GROUP_ALL, DEVICE_GROUP_NONE
from .user import User, GroupList, AuditLog, USER_ADMIN

__all__ = [
    "Account",
    "Device", "DeviceGroup", "DeviceListEntry",
    "User", "GroupList", "AuditLog",
    "DEVICE_GROUP_ALL", "DEVICE_GROUP_NONE", "USER_ADMIN",
]

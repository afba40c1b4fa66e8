"""Business logic services."""

from .device_authorization_service import DeviceAuthorizationService

__all__ = ["DeviceAuthorizationService"]

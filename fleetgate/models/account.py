"""Account model, the tenant that owns users, devices and device groups."""

from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Account(Base):
    """Top-level tenant.

    default_device_authorization decides what a user without explicit
    device groups may see. NULL defers to the global
    DEFAULT_DEVICE_AUTHORIZATION setting.
    """

    __tablename__ = "accounts"

    account_id = Column(String(32), primary_key=True)
    description = Column(String(128), nullable=False, default="")
    default_device_authorization = Column(Boolean, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    users = relationship("User", back_populates="account", cascade="all, delete-orphan")
    devices = relationship("Device", back_populates="account", cascade="all, delete-orphan")
    device_groups = relationship("DeviceGroup", back_populates="account", cascade="all, delete-orphan")

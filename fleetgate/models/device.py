"""Device, DeviceGroup and group membership models."""

from sqlalchemy import Column, String, DateTime, Boolean, BigInteger, ForeignKey, ForeignKeyConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base

# Virtual group meaning "every device in the account". Never stored in
# device_groups; may appear in group_list when granted explicitly.
DEVICE_GROUP_ALL = "ALL"

# Placeholder a picker submits for "no group". Never stored, never resolved.
DEVICE_GROUP_NONE = "none"


def is_group_all(group_id: str | None) -> bool:
    return bool(group_id) and group_id.strip().upper() == DEVICE_GROUP_ALL


def is_group_none(group_id: str | None) -> bool:
    return bool(group_id) and group_id.strip().lower() == DEVICE_GROUP_NONE


class Device(Base):
    """A tracked asset belonging to one account."""

    __tablename__ = "devices"

    account_id = Column(
        String(32),
        ForeignKey("accounts.account_id", ondelete="CASCADE"),
        primary_key=True,
    )
    device_id = Column(String(32), primary_key=True)
    unique_id = Column(String(40), nullable=True, index=True)
    description = Column(String(128), nullable=False, default="")
    short_name = Column(String(16), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    # Epoch seconds of the last valid GPS fix; 0 = never reported.
    last_gps_timestamp = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    account = relationship("Account", back_populates="devices")


class DeviceGroup(Base):
    """Named collection of devices within an account."""

    __tablename__ = "device_groups"

    account_id = Column(
        String(32),
        ForeignKey("accounts.account_id", ondelete="CASCADE"),
        primary_key=True,
    )
    group_id = Column(String(32), primary_key=True)
    description = Column(String(128), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    account = relationship("Account", back_populates="device_groups")
    members = relationship(
        "DeviceListEntry",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="DeviceListEntry.device_id",
    )


class DeviceListEntry(Base):
    """Membership of one device in one group."""

    __tablename__ = "device_list"
    __table_args__ = (
        ForeignKeyConstraint(
            ["account_id", "group_id"],
            ["device_groups.account_id", "device_groups.group_id"],
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["account_id", "device_id"],
            ["devices.account_id", "devices.device_id"],
            ondelete="CASCADE",
        ),
    )

    account_id = Column(String(32), primary_key=True)
    group_id = Column(String(32), primary_key=True)
    device_id = Column(String(32), primary_key=True)

    group = relationship("DeviceGroup", back_populates="members", overlaps="device")
    device = relationship("Device", overlaps="group,members")

"""User, GroupList, and AuditLog models.

GroupList rows are a user's explicit device-group assignments, ordered by
sequence. AuditLog records every change to those assignments.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, ForeignKey, ForeignKeyConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base

USER_ADMIN = "admin"


class User(Base):
    """Login within an account.

    The user whose ID is "admin" (any case) bypasses every device-group
    check. role_id is carried for the web layer and ignored here.
    """

    __tablename__ = "users"

    account_id = Column(
        String(32),
        ForeignKey("accounts.account_id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(String(32), primary_key=True)
    description = Column(String(128), nullable=False, default="")
    role_id = Column(String(32), nullable=True)
    preferred_device_id = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    account = relationship("Account", back_populates="users")
    group_list = relationship(
        "GroupList",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="GroupList.sequence",
    )

    @property
    def is_admin(self) -> bool:
        return bool(self.user_id) and self.user_id.lower() == USER_ADMIN

    @property
    def has_preferred_device(self) -> bool:
        return bool((self.preferred_device_id or "").strip())


class GroupList(Base):
    """Explicit device-group assignment for a user.

    group_id is not a foreign key: the virtual "ALL" group is stored here
    without a matching device_groups row.
    """

    __tablename__ = "group_list"
    __table_args__ = (
        ForeignKeyConstraint(
            ["account_id", "user_id"],
            ["users.account_id", "users.user_id"],
            ondelete="CASCADE",
        ),
    )

    account_id = Column(String(32), primary_key=True)
    user_id = Column(String(32), primary_key=True)
    group_id = Column(String(32), primary_key=True)
    sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="group_list")


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Written by the service layer, never modified or deleted except by
    retention purging.
    Fields:
        action        -- device_groups_set
        resource_type -- user
        resource_id   -- "<account_id>/<user_id>" of the affected user
        details       -- JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(32), nullable=True)
    user_id = Column(String(32), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

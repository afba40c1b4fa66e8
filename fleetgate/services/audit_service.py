"""Audit logging service: records changes to device-group assignments.

Entries are immutable. The service provides a write-only interface for the
application and a read interface for admins.

Usage in service layer:
    audit_service.log(db, account_id="acme", user_id="admin", action="device_groups_set",
                      resource_type="user", resource_id="acme/bob", details={"groups": ["fleet1"]})
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..models.user import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: Session,
    account_id: Optional[str],
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    """Write an audit log entry. Never raises; failures are logged."""
    try:
        entry = AuditLog(
            account_id=account_id,
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=json.dumps(details) if details else None,
        )
        db.add(entry)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to write audit log: %s", e)
        db.rollback()


def get_by_resource(
    db: Session,
    account_id: str,
    resource_type: str,
    resource_id: str,
    limit: int = 100,
) -> list[AuditLog]:
    """Entries for one resource of one account, newest first."""
    return (
        db.query(AuditLog)
        .filter(
            AuditLog.account_id == account_id,
            AuditLog.resource_type == resource_type,
            AuditLog.resource_id == resource_id,
        )
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )


def purge_old_entries(db: Session, days: int = 365, account_id: Optional[str] = None) -> int:
    """Delete entries older than `days`, for one account or all of them.

    Returns the number of deleted rows. Skipped when days <= 0 (keep forever).
    Never raises, logs failures.
    """
    if days <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    query = db.query(AuditLog).filter(AuditLog.created_at < cutoff)
    if account_id is not None:
        query = query.filter(AuditLog.account_id == account_id)
    try:
        count = query.delete(synchronize_session=False)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to purge audit log: %s", e, extra={"account_id": account_id})
        db.rollback()
        return 0
    return count

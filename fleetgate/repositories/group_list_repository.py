"""Repository for the per-user GroupList association table.

Writes only flush; the caller owns the transaction so a full replace
(delete + inserts) commits or rolls back as one unit.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.user import GroupList
from .base import storage_errors


class GroupListRepository:
    """Explicit device-group assignments, ordered by sequence."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, account_id: str, user_id: str, limit: Optional[int] = None) -> List[str]:
        """Group IDs assigned to the user, in sequence order (group_id breaks ties)."""
        if not account_id or not user_id:
            return []
        with storage_errors("group list read"):
            query = (
                self.db.query(GroupList.group_id)
                .filter(GroupList.account_id == account_id, GroupList.user_id == user_id)
                .order_by(GroupList.sequence, GroupList.group_id)
            )
            if limit is not None and limit > 0:
                query = query.limit(limit)
            return [row.group_id for row in query.all()]

    def delete_all_for_user(self, account_id: str, user_id: str) -> int:
        """Remove every assignment for the user in a single DELETE."""
        with storage_errors("group list delete"):
            count = (
                self.db.query(GroupList)
                .filter(GroupList.account_id == account_id, GroupList.user_id == user_id)
                .delete(synchronize_session="fetch")
            )
            self.db.flush()
        return count

    def insert_for_user(self, account_id: str, user_id: str, group_id: str, sequence: int) -> GroupList:
        entry = GroupList(
            account_id=account_id,
            user_id=user_id,
            group_id=group_id,
            sequence=sequence,
        )
        with storage_errors("group list insert"):
            self.db.add(entry)
            self.db.flush()
        return entry

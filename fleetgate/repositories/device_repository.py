"""Repository for devices and device groups."""

from typing import List, Optional

from sqlalchemy.orm import Query

from ..exceptions import DeviceNotFoundError, DeviceGroupNotFoundError
from ..models.device import Device, DeviceGroup, DeviceListEntry
from .base import AccountScopedRepository


class DeviceRepository(AccountScopedRepository[Device]):
    """Device lookups within an account, ordered by device ID."""

    model_class = Device
    id_column = "device_id"
    not_found_error = DeviceNotFoundError

    def list_device_ids_for_account(
        self,
        account_id: str,
        include_inactive: bool = False,
        limit: Optional[int] = None,
    ) -> List[str]:
        with self._storage("device list"):
            query = self.db.query(Device.device_id).filter(Device.account_id == account_id)
            if not include_inactive:
                query = query.filter(Device.is_active.is_(True))
            query = query.order_by(Device.device_id)
            if limit is not None and limit > 0:
                query = query.limit(limit)
            return [row.device_id for row in query.all()]

    def get_many(self, account_id: str, device_ids: List[str]) -> dict[str, Device]:
        """Load devices by ID in one query, keyed by device_id."""
        if not device_ids:
            return {}
        with self._storage("device batch lookup"):
            devices = (
                self._base_query(account_id)
                .filter(Device.device_id.in_(device_ids))
                .all()
            )
        return {d.device_id: d for d in devices}


class DeviceGroupRepository(AccountScopedRepository[DeviceGroup]):
    """Device groups and their membership lists."""

    model_class = DeviceGroup
    id_column = "group_id"
    not_found_error = DeviceGroupNotFoundError

    def list_group_ids_for_account(self, account_id: str) -> List[str]:
        with self._storage("device group list"):
            rows = (
                self.db.query(DeviceGroup.group_id)
                .filter(DeviceGroup.account_id == account_id)
                .order_by(DeviceGroup.group_id)
                .all()
            )
        return [row.group_id for row in rows]

    def _members_query(self, account_id: str, group_id: str, include_inactive: bool) -> Query:
        query = (
            self.db.query(DeviceListEntry.device_id)
            .filter(
                DeviceListEntry.account_id == account_id,
                DeviceListEntry.group_id == group_id,
            )
        )
        if not include_inactive:
            query = query.join(
                Device,
                (Device.account_id == DeviceListEntry.account_id)
                & (Device.device_id == DeviceListEntry.device_id),
            ).filter(Device.is_active.is_(True))
        return query.order_by(DeviceListEntry.device_id)

    def list_device_ids_for_group(
        self,
        account_id: str,
        group_id: str,
        include_inactive: bool = False,
        limit: Optional[int] = None,
    ) -> List[str]:
        with self._storage("device group members"):
            query = self._members_query(account_id, group_id, include_inactive)
            if limit is not None and limit > 0:
                query = query.limit(limit)
            return [row.device_id for row in query.all()]

    def contains_device(self, account_id: str, group_id: str, device_id: str) -> bool:
        """True if device_id is listed in the group, active or not."""
        with self._storage("device group membership"):
            return bool(self.db.query(
                self.db.query(DeviceListEntry)
                .filter(
                    DeviceListEntry.account_id == account_id,
                    DeviceListEntry.group_id == group_id,
                    DeviceListEntry.device_id == device_id,
                )
                .exists()
            ).scalar())

    def add_device(self, account_id: str, group_id: str, device_id: str) -> None:
        """Add a device to a group. Silently ignores duplicates."""
        with self._storage("device group add"):
            existing = self.db.get(DeviceListEntry, (account_id, group_id, device_id))
            if existing is None:
                self.db.add(DeviceListEntry(account_id=account_id, group_id=group_id, device_id=device_id))
                self.db.commit()

"""Device authorization: which device groups and devices a user may access.

This is the one place where device visibility rules are defined. The web
layer and device servers call it; nothing here knows about requests.

Rules for a single device, first match wins:
    1. blank device ID                      -> denied
    2. admin user / SystemContext / None    -> allowed
    3. PREFERRED_DEVICE_AUTH is true|only:
         the user's preferred device        -> allowed
         policy "only", any other device    -> denied
    4. user has no explicit groups          -> account default authorization
    5. an explicit group is "ALL" or lists the device -> allowed
    6. otherwise                            -> denied

all_authorized_group_ids() always puts the virtual "ALL" entry first so
pickers can offer it. That entry is a convenience, not a grant: only an
"ALL" row stored in the user's GroupList authorizes every device.
"""

import json
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import PreferredDeviceAuth, Settings, settings as default_settings
from ..core.principal import Principal, SystemContext, is_admin_user, user_display_name
from ..exceptions import ForbiddenError, NotFoundError, StorageError, ValidationError
from ..models.account import Account
from ..models.device import DEVICE_GROUP_ALL, is_group_all, is_group_none
from ..models.user import User
from ..repositories import (
    AccountRepository,
    DeviceGroupRepository,
    DeviceRepository,
    GroupListRepository,
    storage_errors,
)
from ..schemas.summary import DeviceSummary, GroupSummary
from . import audit_service

logger = logging.getLogger(__name__)


def _first(ids: List[str]) -> Optional[str]:
    return ids[0] if ids else None


class DeviceAuthorizationService:
    """Device-group and device authorization for one request.

    Public methods:
        explicitly_authorized_group_ids -- raw GroupList for a user (memoized)
        all_authorized_group_ids        -- browsable group IDs, "ALL" first
        all_authorized_groups           -- same, as GroupSummary values
        is_authorized_device            -- single yes/no decision
        require_authorized_device       -- raises ForbiddenError on "no"
        default_device_id               -- preferred or first authorized device
        authorized_device_ids           -- every reachable device ID
        authorized_devices              -- same, as DeviceSummary values
        set_device_groups               -- full replace of a user's GroupList
        device_group_history            -- audited changes to a user's GroupList
        default_device_authorization    -- what "no explicit groups" means

    An instance holds one Session and a per-instance memo of group lists;
    create one per request and discard it afterwards.
    """

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.settings = config or default_settings
        self.account_repo = AccountRepository(db)
        self.device_repo = DeviceRepository(db)
        self.group_repo = DeviceGroupRepository(db)
        self.group_list_repo = GroupListRepository(db)
        self._group_cache: dict[tuple[str, str], List[str]] = {}

    # ------------------------------------------------------------------
    # Group assignments
    # ------------------------------------------------------------------

    def clear_cached_group_ids(self, user: Optional[User] = None) -> None:
        """Forget memoized group lists for one user, or for everyone."""
        if user is None:
            self._group_cache.clear()
        else:
            self._group_cache.pop((user.account_id, user.user_id), None)

    def explicitly_authorized_group_ids(self, user: Principal) -> List[str]:
        """Group IDs stored in the user's GroupList, in sequence order.

        No virtual-group expansion. Empty when nothing is assigned, and for
        principals that have no GroupList (None, SystemContext).

        Raises:
            StorageError: the GroupList could not be read.
        """
        if user is None or isinstance(user, SystemContext) or not user.user_id:
            return []

        key = (user.account_id, user.user_id)
        cached = self._group_cache.get(key)
        if cached is None:
            rows = self.group_list_repo.list_for_user(user.account_id, user.user_id)
            cached = list(dict.fromkeys(rows))
            self._group_cache[key] = cached
        return list(cached)

    def default_device_authorization(self, user: Principal, account: Optional[Account] = None) -> bool:
        """Whether a user with no explicit groups may see every device.

        Admins always may. Otherwise the account's own flag decides, falling
        back to DEFAULT_DEVICE_AUTHORIZATION when the account leaves it unset.
        """
        if is_admin_user(user):
            return True
        if account is None:
            account = self.account_repo.get_by_id(user.account_id)
        if account.default_device_authorization is None:
            return self.settings.default_device_authorization
        return bool(account.default_device_authorization)

    def all_authorized_group_ids(self, account: Account, user: Principal) -> List[str]:
        """Group IDs the user may browse, with the virtual "ALL" at index 0.

        Admins (and users with no explicit groups) get every group of the
        account in group-ID order; everyone else gets their GroupList in
        sequence order.
        """
        self._check_same_account(account, user)

        if is_admin_user(user):
            group_ids = self.group_repo.list_group_ids_for_account(account.account_id)
        else:
            group_ids = self.explicitly_authorized_group_ids(user)
            if not group_ids:
                group_ids = self.group_repo.list_group_ids_for_account(account.account_id)

        return [DEVICE_GROUP_ALL] + [g for g in group_ids if not is_group_all(g)]

    def all_authorized_groups(self, account: Account, user: Principal) -> List[GroupSummary]:
        """all_authorized_group_ids() resolved to display names.

        Groups that no longer exist are left out.
        """
        summaries: List[GroupSummary] = []
        for group_id in self.all_authorized_group_ids(account, user):
            if is_group_all(group_id):
                summaries.append(GroupSummary(group_id=DEVICE_GROUP_ALL, name=self.settings.device_group_all_title))
                continue
            group = self.group_repo.get_optional(account.account_id, group_id)
            if group is None:
                logger.debug("Skipping missing device group %s/%s", account.account_id, group_id)
                continue
            summaries.append(GroupSummary(group_id=group.group_id, name=group.description or group.group_id))
        return summaries

    def set_device_groups(
        self,
        user: User,
        group_ids: Optional[Iterable[str]],
        changed_by: Optional[str] = None,
    ) -> bool:
        """Replace the user's GroupList with ``group_ids``.

        "ALL" anywhere in the input wins over every other entry. It is stored
        (as the single row, sequence 0) only when the account would otherwise
        show this user nothing; with default authorization on, an empty
        GroupList already means every device.

        Otherwise blank entries and "none" are dropped, unknown groups are
        logged and skipped, duplicates collapse, and the rest are stored with
        sequence 0..n-1 in input order.

        The delete and the inserts commit together. Returns False (after
        rolling back) if storage fails or the user's account no longer
        exists; the previous assignment is kept.
        """
        account_id, user_id = user.account_id, user.user_id
        requested = list(group_ids or [])

        try:
            to_store: List[str] = []
            if any(is_group_all(g) for g in requested):
                if not self.default_device_authorization(user):
                    to_store = [DEVICE_GROUP_ALL]
            else:
                for group_id in requested:
                    try:
                        candidate = self._assignable_group_id(account_id, group_id)
                    except ValidationError as e:
                        logger.warning(
                            "Skipping device group for %s: %s",
                            user_display_name(user), e.message,
                            extra={"account_id": account_id, "user_id": user_id},
                        )
                        continue
                    if candidate and candidate not in to_store:
                        to_store.append(candidate)

            self.group_list_repo.delete_all_for_user(account_id, user_id)
            for sequence, group_id in enumerate(to_store):
                self.group_list_repo.insert_for_user(account_id, user_id, group_id, sequence)
            with storage_errors("group list replace"):
                self.db.commit()
        except (StorageError, NotFoundError) as e:
            self.db.rollback()
            logger.error(
                "Error replacing device groups for %s/%s: %s",
                account_id, user_id, e.message,
                extra={"account_id": account_id, "user_id": user_id},
            )
            return False
        finally:
            self.clear_cached_group_ids(user)

        logger.info(
            "Device groups set for %s/%s: %s", account_id, user_id, to_store or "(none)",
            extra={"account_id": account_id, "user_id": user_id},
        )
        audit_service.log(
            self.db,
            account_id=account_id,
            user_id=changed_by,
            action="device_groups_set",
            resource_type="user",
            resource_id=f"{account_id}/{user_id}",
            details={"requested": requested, "stored": to_store},
        )
        return True

    def device_group_history(self, user: User, limit: int = 20) -> List[dict]:
        """Past set_device_groups() calls for the user, newest first.

        Each entry has ``changed_by``, ``changed_at`` and the ``requested``
        and ``stored`` group lists.
        """
        entries = audit_service.get_by_resource(
            self.db, user.account_id, "user", f"{user.account_id}/{user.user_id}", limit=limit,
        )
        history = []
        for entry in entries:
            if entry.action != "device_groups_set":
                continue
            details = json.loads(entry.details) if entry.details else {}
            history.append({
                "changed_by": entry.user_id,
                "changed_at": entry.created_at,
                "requested": details.get("requested", []),
                "stored": details.get("stored", []),
            })
        return history

    def _assignable_group_id(self, account_id: str, group_id: Optional[str]) -> Optional[str]:
        """Normalize one requested group ID.

        Returns None for entries that are silently ignored (blank, "none").
        Raises ValidationError for groups the account does not have.
        """
        group_id = (group_id or "").strip()
        if not group_id or is_group_none(group_id):
            return None
        if not self.group_repo.exists(account_id, group_id):
            raise ValidationError(f"DeviceGroup does not exist: {account_id}/{group_id}", field="group_id")
        return group_id

    # ------------------------------------------------------------------
    # Device decisions
    # ------------------------------------------------------------------

    def is_authorized_device(self, user: Principal, device_id: Optional[str]) -> bool:
        """Decide whether ``user`` may access ``device_id``.

        Storage failures propagate as StorageError; a False result always
        means "denied", never "could not tell".
        """
        device_id = (device_id or "").strip()
        if not device_id:
            return False

        if is_admin_user(user):
            return True

        policy = self.settings.preferred_device_auth
        if policy != PreferredDeviceAuth.FALSE:
            preferred = (user.preferred_device_id or "").strip()
            if preferred and device_id.lower() == preferred.lower():
                return True
            if policy == PreferredDeviceAuth.ONLY:
                logger.info(
                    "User %s limited to preferred device, denied: %s", user_display_name(user), device_id,
                    extra={"account_id": user.account_id, "user_id": user.user_id, "device_id": device_id},
                )
                return False

        group_ids = self.explicitly_authorized_group_ids(user)
        if not group_ids:
            return self.default_device_authorization(user)

        for group_id in group_ids:
            if is_group_all(group_id):
                return True
            if self.group_repo.contains_device(user.account_id, group_id, device_id):
                return True

        logger.info(
            "User not authorized to device '%s/%s': %s", user.account_id, user.user_id, device_id,
            extra={"account_id": user.account_id, "user_id": user.user_id, "device_id": device_id},
        )
        return False

    def require_authorized_device(self, user: Principal, device_id: Optional[str]) -> None:
        """Raise ForbiddenError unless is_authorized_device() allows access."""
        if not self.is_authorized_device(user, device_id):
            raise ForbiddenError(f"Access denied to device: {device_id}")

    def default_device_id(self, user: User, include_inactive: bool = False) -> Optional[str]:
        """The device to show first: the preferred device if usable, else the
        first device of the first assigned group (or of the account)."""
        account_id = user.account_id

        if user.has_preferred_device:
            preferred = user.preferred_device_id.strip()
            if self.device_repo.exists(account_id, preferred) and self.is_authorized_device(user, preferred):
                return preferred

        # Read past the memo: only the first assignment matters here.
        group_ids = self.group_list_repo.list_for_user(account_id, user.user_id, limit=1)
        if not group_ids:
            if self.default_device_authorization(user):
                return _first(self.device_repo.list_device_ids_for_account(account_id, include_inactive, limit=1))
            return None

        return _first(self._device_ids_for_group(account_id, group_ids[0], include_inactive, limit=1))

    def authorized_device_ids(
        self,
        user: Principal,
        include_inactive: bool = False,
        account: Optional[Account] = None,
    ) -> List[str]:
        """Every device ID the user can reach, without duplicates.

        With explicit groups: the union of their members in group order
        ("ALL" expands to the whole account). Without: every device of the
        account if default authorization allows it, else nothing.
        A None user or SystemContext gets the whole account.
        """
        if user is None or isinstance(user, SystemContext):
            account_id = account.account_id if account is not None else getattr(user, "account_id", None)
            if not account_id:
                return []
            return self.device_repo.list_device_ids_for_account(account_id, include_inactive)

        self._check_same_account(account, user)

        group_ids = self.explicitly_authorized_group_ids(user)
        if group_ids:
            device_ids: dict[str, None] = {}
            for group_id in group_ids:
                for device_id in self._device_ids_for_group(user.account_id, group_id, include_inactive):
                    device_ids.setdefault(device_id, None)
            return list(device_ids)

        if self.default_device_authorization(user, account):
            return self.device_repo.list_device_ids_for_account(user.account_id, include_inactive)
        return []

    def authorized_devices(
        self,
        user: Principal,
        include_inactive: bool = False,
        account: Optional[Account] = None,
    ) -> List[DeviceSummary]:
        """authorized_device_ids() resolved to DeviceSummary values.

        Unless include_inactive is set, devices that are inactive or have
        never reported a GPS fix are left out.
        """
        account_id = account.account_id if account is not None else getattr(user, "account_id", None)
        if not account_id:
            return []

        device_ids = self.authorized_device_ids(user, include_inactive, account)
        devices = self.device_repo.get_many(account_id, device_ids)

        summaries: List[DeviceSummary] = []
        for device_id in device_ids:
            device = devices.get(device_id)
            if device is None:
                logger.warning("DeviceID not found: %s/%s", account_id, device_id)
            elif not include_inactive and not device.is_active:
                logger.warning("DeviceID is not active: %s/%s", account_id, device_id)
            elif not include_inactive and (device.last_gps_timestamp or 0) <= 0:
                logger.warning("DeviceID has not yet received a valid GPS event: %s/%s", account_id, device_id)
            else:
                summaries.append(DeviceSummary(
                    device_id=device.device_id,
                    unique_id=device.unique_id,
                    name=device.description or "",
                    short_name=device.short_name or "",
                ))
        return summaries

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _device_ids_for_group(
        self,
        account_id: str,
        group_id: str,
        include_inactive: bool,
        limit: Optional[int] = None,
    ) -> List[str]:
        if is_group_all(group_id):
            return self.device_repo.list_device_ids_for_account(account_id, include_inactive, limit=limit)
        return self.group_repo.list_device_ids_for_group(account_id, group_id, include_inactive, limit=limit)

    @staticmethod
    def _check_same_account(account: Optional[Account], user: Principal) -> None:
        if account is None or user is None:
            return
        if user.account_id != account.account_id:
            raise ValidationError(
                f"User {user_display_name(user)} does not belong to account {account.account_id}",
                field="account_id",
            )

"""Repository for accounts and their users."""

from ..exceptions import AccountNotFoundError, UserNotFoundError
from ..models.account import Account
from ..models.user import User
from .base import BaseRepository, AccountScopedRepository


class AccountRepository(BaseRepository[Account]):
    """Data access layer for accounts."""

    model_class = Account
    id_column = "account_id"
    not_found_error = AccountNotFoundError


class UserRepository(AccountScopedRepository[User]):
    """Data access layer for users."""

    model_class = User
    id_column = "user_id"
    not_found_error = UserNotFoundError

    def list_for_account(self, account_id: str) -> list[User]:
        with self._storage("user list"):
            return self._base_query(account_id).order_by(User.user_id).all()

    def delete(self, account_id: str, user_id: str) -> bool:
        """Delete a user. Their GroupList rows go with them."""
        user = self.get_optional(account_id, user_id)
        if user is None:
            return False
        with self._storage("user delete"):
            self.db.delete(user)
            self.db.commit()
        return True

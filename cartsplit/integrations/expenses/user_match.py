"""Match in-app person names to Splitwise accounts."""

import logging
from typing import Callable, Optional

from cartsplit.models.integrations import SplitwiseUser

logger = logging.getLogger(__name__)


def find_user_by_name(name: str, users: list[SplitwiseUser]) -> Optional[SplitwiseUser]:
    """Find the first account whose name matches a person's display name.

    A candidate matches on an exact first, last or full name, or when either of
    the search name and the candidate's full name contains the other. Names
    are compared trimmed and case-insensitively. Candidates are checked in
    list order and the first match wins; there is no scoring.

    Args:
        name: The person's display name from the order.
        users: Candidate accounts, usually the operator's friends.

    Returns:
        The matched account, or None when nothing matches.
    """
    search = name.strip().lower()
    if not search:
        return None

    for user in users:
        first = user.first_name.strip().lower()
        last = (user.last_name or "").strip().lower()
        full = user.full_name.lower()

        if search == first or search == last or search == full:
            return user
        if full and (search in full or full in search):
            return user

    return None


class UserResolver:
    """Resolve person names against one friends list, once per name.

    Create one resolver per batch; hits and misses are both cached so each
    distinct person is looked up at most once.
    """

    def __init__(
        self,
        users: list[SplitwiseUser],
        matcher: Optional[Callable[[str, list[SplitwiseUser]], Optional[SplitwiseUser]]] = None,
    ):
        self.users = users
        self._matcher = matcher
        self._cache: dict[str, Optional[SplitwiseUser]] = {}

    def resolve(self, name: str) -> Optional[SplitwiseUser]:
        if name in self._cache:
            return self._cache[name]

        matcher = self._matcher or find_user_by_name
        user = matcher(name, self.users)
        if user is None:
            logger.warning(f"No Splitwise friend matches '{name}'")
        else:
            logger.info(f"Matched '{name}' to Splitwise user {user.id} ({user.full_name})")

        self._cache[name] = user
        return user

    @property
    def unresolved(self) -> list[str]:
        return [name for name, user in self._cache.items() if user is None]

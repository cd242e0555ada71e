"""Identity of the user whose namespace is being synced."""

from __future__ import annotations

from dataclasses import dataclass

USER_PREFIX_ROOT = "users"


@dataclass(slots=True, frozen=True)
class UserIdentity:
    """
    A verified user, as handed over by the licensing layer.

    Only used to scope storage keys and to tag activity records; the sync
    engine itself never sees it.
    """

    user_id: str
    display_name: str

    def __post_init__(self) -> None:
        if not isinstance(self.user_id, str) or not self.user_id.strip():
            raise ValueError("UserIdentity.user_id must be a non-empty string")
        if "/" in self.user_id:
            raise ValueError("UserIdentity.user_id must not contain '/'")

    @property
    def folder_prefix(self) -> str:
        """Key prefix of this user's namespace, e.g. "users/<id>/"."""
        return f"{USER_PREFIX_ROOT}/{self.user_id}/"

"""Merge the server's local accounts with plex.tv identities."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..models import LocalUser, ReconciledUser, RemoteIdentity
from .provider import MetadataProvider


class IdentityReconciler:
    """Produce one display username per local account."""

    @staticmethod
    def reconcile(
        local_users: Iterable[LocalUser],
        remote_identities: Iterable[RemoteIdentity] | None,
    ) -> list[ReconciledUser]:
        """Prefer the plex.tv username, falling back to the local name.

        Every local user yields exactly one entry, in listing order; remote-only
        identities are ignored.
        """

        remote_by_id: dict[int, RemoteIdentity] = {}
        for identity in remote_identities or ():
            # First match wins, as a linear search would.
            remote_by_id.setdefault(identity.id, identity)

        reconciled: list[ReconciledUser] = []
        for user in local_users:
            remote = remote_by_id.get(user.id)
            if remote is not None and remote.username:
                username = remote.username
            else:
                username = user.name
            reconciled.append(ReconciledUser(id=user.id, username=username))
        return reconciled

    async def fetch(self, provider: MetadataProvider) -> list[ReconciledUser]:
        remote = await provider.get_user_data_from_plex_tv()
        local = await provider.get_users()
        return self.reconcile(local, remote)

    @staticmethod
    def usernames_for(
        users: Sequence[ReconciledUser], account_ids: Iterable[int]
    ) -> list[str]:
        """Return usernames of ``users`` whose id is in ``account_ids``, in user order."""

        wanted = set(account_ids)
        return [user.username for user in users if user.id in wanted]

"""Identity reconciliation tests."""

from __future__ import annotations

import pytest

from ruleprops.errors import ProviderError
from ruleprops.models import LocalUser, ReconciledUser, RemoteIdentity
from ruleprops.services.identity import IdentityReconciler


def test_reconcile_prefers_remote_username_and_keeps_order() -> None:
    local = [LocalUser(id=1, name="alice"), LocalUser(id=2, name="bob")]
    remote = [RemoteIdentity(id=1, username="Alice99")]

    reconciled = IdentityReconciler.reconcile(local, remote)

    assert reconciled == [
        ReconciledUser(id=1, username="Alice99"),
        ReconciledUser(id=2, username="bob"),
    ]


def test_reconcile_falls_back_on_empty_username() -> None:
    local = [LocalUser(id=3, name="carol")]
    remote = [RemoteIdentity(id=3, username=""), RemoteIdentity(id=3, username=None)]

    assert IdentityReconciler.reconcile(local, remote) == [
        ReconciledUser(id=3, username="carol")
    ]


def test_reconcile_ignores_remote_only_identities() -> None:
    local = [LocalUser(id=1, name="alice")]
    remote = [RemoteIdentity(id=9, username="stranger")]

    reconciled = IdentityReconciler.reconcile(local, remote)

    assert [user.id for user in reconciled] == [1]


def test_reconcile_without_remote_directory() -> None:
    local = [LocalUser(id=1, name="alice"), LocalUser(id=2, name="bob")]

    reconciled = IdentityReconciler.reconcile(local, None)

    assert [user.username for user in reconciled] == ["alice", "bob"]


def test_usernames_for_uses_user_order() -> None:
    users = [
        ReconciledUser(id=1, username="alice"),
        ReconciledUser(id=2, username="bob"),
        ReconciledUser(id=3, username="carol"),
    ]

    assert IdentityReconciler.usernames_for(users, [3, 1, 3, 42]) == ["alice", "carol"]


@pytest.mark.anyio("asyncio")
async def test_fetch_reads_both_directories(provider) -> None:
    provider.add_user(1, "alice", "Alice99")
    provider.add_user(2, "bob")

    reconciled = await IdentityReconciler().fetch(provider)

    assert [user.username for user in reconciled] == ["Alice99", "bob"]


@pytest.mark.anyio("asyncio")
async def test_fetch_propagates_provider_failures(provider) -> None:
    provider.add_user(1, "alice")
    provider.fail("get_users")

    with pytest.raises(ProviderError):
        await IdentityReconciler().fetch(provider)

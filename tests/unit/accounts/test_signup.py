"""Unit tests for AccountService."""

from unittest.mock import patch

import pytest

from feedesk.accounts import AccountService, ProvisioningError
from feedesk.data_store import DataStoreError
from feedesk.identity import EmailTakenError, IdentityService
from feedesk.service import Backend, LocalDataService


@pytest.fixture
def accounts(backend: Backend) -> AccountService:
    return AccountService(backend.identity, backend.client)


@pytest.mark.unit
class TestSignUp:
    """Tests for AccountService.sign_up."""

    def test_sign_up_provisions_student(self, accounts: AccountService, backend: Backend) -> None:
        outcome = accounts.sign_up("Ada Lovelace", "ada@example.com", "secret123")

        assert outcome.session is not None
        assert outcome.student["user_id"] == outcome.principal.id
        assert outcome.student["name"] == "Ada Lovelace"
        assert backend.store.read("students") == [outcome.student]

    def test_email_taken(self, accounts: AccountService) -> None:
        accounts.sign_up("Ada", "ada@example.com", "secret123")

        with pytest.raises(EmailTakenError):
            accounts.sign_up("Ada Again", "ada@example.com", "secret123")

    def test_provisioning_failure(self, accounts: AccountService) -> None:
        with (
            patch.object(LocalDataService, "insert", side_effect=DataStoreError("denied")),
            pytest.raises(ProvisioningError, match="Please try logging in"),
        ):
            accounts.sign_up("Ada", "ada@example.com", "secret123")


@pytest.mark.unit
class TestDeferredProvisioning:
    """Signup with email confirmation provisions on first sign-in."""

    @pytest.fixture
    def confirming(self, backend: Backend) -> IdentityService:
        return IdentityService(backend.store, bcrypt_rounds=4, confirm_email=True)

    @pytest.fixture
    def deferred(self, backend: Backend, confirming: IdentityService) -> AccountService:
        return AccountService(confirming, backend.client)

    def test_no_record_until_sign_in(
        self, deferred: AccountService, confirming: IdentityService, backend: Backend
    ) -> None:
        outcome = deferred.sign_up("Ada Lovelace", "ada@example.com", "secret123")

        assert outcome.session is None
        assert outcome.student is None
        assert backend.store.read("students") == []
        assert confirming.listener_count == 1

    def test_first_sign_in_provisions_once(
        self, deferred: AccountService, confirming: IdentityService, backend: Backend
    ) -> None:
        outcome = deferred.sign_up("Ada Lovelace", "ada@example.com", "secret123")

        deferred.sign_in("ada@example.com", "secret123")
        deferred.sign_in("ada@example.com", "secret123")

        rows = backend.store.read("students")
        assert len(rows) == 1
        assert rows[0]["user_id"] == outcome.principal.id
        assert rows[0]["name"] == "Ada Lovelace"
        assert confirming.listener_count == 0

    def test_other_principal_sign_in_ignored(
        self, deferred: AccountService, confirming: IdentityService, backend: Backend
    ) -> None:
        deferred.sign_up("Ada", "ada@example.com", "secret123")
        confirming.sign_up("grace@example.com", "secret123")
        deferred.sign_in("grace@example.com", "secret123")

        assert backend.store.read("students") == []
        assert confirming.listener_count == 1


@pytest.mark.unit
class TestSignInOut:
    """Tests for AccountService.sign_in and sign_out."""

    def test_sign_in_and_out(self, accounts: AccountService, backend: Backend) -> None:
        accounts.sign_up("Ada", "ada@example.com", "secret123")
        session = accounts.sign_in("ada@example.com", "secret123")

        accounts.sign_out(session.access_token)

        assert backend.identity.get_principal(session.access_token) is None

"""Unit tests for ProfileService."""

from unittest.mock import patch

import pytest

from feedesk.accounts import (
    ProfileLoadError,
    ProfileService,
    ProfileUpdateError,
    ProvisioningError,
    default_student_name,
)
from feedesk.data_store import DataStoreError, DuplicateRowError
from feedesk.identity import NotAuthenticatedError, Principal, Session
from feedesk.service import Backend, LocalDataService


@pytest.fixture
def session(backend: Backend) -> Session:
    return backend.identity.sign_up("ada@example.com", "secret123", name="Ada Lovelace").session


@pytest.fixture
def service(backend: Backend, session: Session) -> LocalDataService:
    return backend.client(session.access_token)


@pytest.fixture
def profiles(service: LocalDataService) -> ProfileService:
    return ProfileService(service)


@pytest.mark.unit
class TestDefaultStudentName:
    """Tests for default_student_name."""

    def test_uses_name(self) -> None:
        assert default_student_name(Principal("p1", "ada@example.com", " Ada ")) == "Ada"

    def test_falls_back_to_email_local_part(self) -> None:
        assert default_student_name(Principal("p1", "ada.l@example.com")) == "ada.l"

    def test_falls_back_to_student(self) -> None:
        assert default_student_name(Principal("p1", "@example.com")) == "Student"


@pytest.mark.unit
class TestEnsureStudent:
    """Tests for ProfileService.ensure_student."""

    def test_creates_missing_record(self, profiles: ProfileService, session: Session) -> None:
        student = profiles.ensure_student(session.principal)

        assert student["user_id"] == session.principal.id
        assert student["name"] == "Ada Lovelace"
        assert student["email"] == "ada@example.com"
        assert student["fees_paid"] is False

    def test_returns_existing_record(self, profiles: ProfileService, session: Session) -> None:
        first = profiles.ensure_student(session.principal)

        assert profiles.ensure_student(session.principal, name="Other") == first

    def test_concurrent_insert_returns_winner(
        self, profiles: ProfileService, service: LocalDataService, session: Session
    ) -> None:
        """A lost insert race returns the record the other caller created."""
        winner = service.insert(
            "students",
            {"name": "Winner", "email": "ada@example.com", "user_id": session.principal.id},
        )

        with patch.object(ProfileService, "find_student", side_effect=[None, winner]):
            assert profiles.ensure_student(session.principal) == winner

        assert len(service.read("students")) == 1

    def test_duplicate_without_winner_reraises(
        self, profiles: ProfileService, session: Session
    ) -> None:
        with (
            patch.object(ProfileService, "find_student", return_value=None),
            patch.object(LocalDataService, "insert", side_effect=DuplicateRowError("dup")),
            pytest.raises(DuplicateRowError),
        ):
            profiles.ensure_student(session.principal)


@pytest.mark.unit
class TestLoadProfile:
    """Tests for ProfileService.load_profile."""

    def test_first_visit_provisions(
        self, profiles: ProfileService, service: LocalDataService
    ) -> None:
        profile = profiles.load_profile()

        assert profile.student["name"] == "Ada Lovelace"
        assert profile.transactions == []
        assert len(service.read("students")) == 1

    def test_transactions_newest_first(
        self, profiles: ProfileService, service: LocalDataService
    ) -> None:
        student = profiles.load_profile().student
        for i in range(2):
            service.insert(
                "transactions",
                {
                    "student_id": student["id"],
                    "amount": 100 + i,
                    "card_last_four": "4242",
                    "transaction_id": f"TXN_{i}_abc",
                    "status": "completed",
                },
            )

        profile = profiles.load_profile()

        assert [t["amount"] for t in profile.transactions] == [101, 100]

    def test_not_signed_in(self, backend: Backend) -> None:
        with pytest.raises(NotAuthenticatedError):
            ProfileService(backend.client()).load_profile()

    def test_read_failure(self, profiles: ProfileService) -> None:
        with (
            patch.object(LocalDataService, "read", side_effect=DataStoreError("down")),
            pytest.raises(ProfileLoadError, match="Failed to load profile"),
        ):
            profiles.load_profile()

    def test_provisioning_failure(self, profiles: ProfileService) -> None:
        with (
            patch.object(LocalDataService, "insert", side_effect=DataStoreError("denied")),
            pytest.raises(ProvisioningError, match="Failed to create profile"),
        ):
            profiles.load_profile()

    def test_transaction_history_failure_leaves_empty_list(
        self, profiles: ProfileService
    ) -> None:
        profiles.load_profile()

        with patch.object(
            ProfileService, "list_transactions", side_effect=DataStoreError("down")
        ):
            profile = profiles.load_profile()

        assert profile.transactions == []


@pytest.mark.unit
class TestUpdateProfile:
    """Tests for ProfileService.update_profile."""

    def test_update(self, profiles: ProfileService, service: LocalDataService) -> None:
        student = profiles.load_profile().student

        updated = profiles.update_profile(student["id"], " Ada King ", "ada.king@example.com")

        assert updated["name"] == "Ada King"
        assert updated["email"] == "ada.king@example.com"
        assert service.read("students")[0]["name"] == "Ada King"

    @pytest.mark.parametrize(("name", "email"), [("", "a@example.com"), ("Ada", "  ")])
    def test_blank_values_rejected(self, profiles: ProfileService, name: str, email: str) -> None:
        student = profiles.load_profile().student

        with pytest.raises(ProfileUpdateError, match="cannot be empty"):
            profiles.update_profile(student["id"], name, email)

    def test_failed_update_changes_nothing(
        self, profiles: ProfileService, service: LocalDataService
    ) -> None:
        student = profiles.load_profile().student

        with (
            patch.object(LocalDataService, "update", side_effect=DataStoreError("down")),
            pytest.raises(ProfileUpdateError, match="Failed to update profile"),
        ):
            profiles.update_profile(student["id"], "Ada King", "ada@example.com")

        assert service.read("students")[0]["name"] == "Ada Lovelace"

    def test_missing_student(self, profiles: ProfileService) -> None:
        with pytest.raises(ProfileUpdateError):
            profiles.update_profile("missing", "Ada", "ada@example.com")

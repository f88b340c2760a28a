"""Unit tests for the identity store.

Tests registration, the role-tagged union, credential checks and profile
updates.
"""

from uuid import uuid4

import pytest

from channelhub.domain.entities import Professor, Student, UserRole, user_adapter
from channelhub.domain.exceptions import (
    EmailAlreadyExistsError,
    EntityNotFoundError,
    ImmutableFieldError,
    InvalidCredentialError,
    ValidationError,
)
from channelhub.events.platform_events import UserRegisteredEvent


class TestCreateUser:
    """Tests for IdentityStore.create_user."""

    @pytest.mark.asyncio
    async def test_role_tag_selects_variant(self, platform, recorder) -> None:
        """Test that the role tag dispatches to Professor or Student."""
        prof = await platform.identity.create_user(
            {"role": "professor", "name": "Ahmed", "email": "ahmed@example.com"}
        )
        stud = await platform.identity.create_user(
            {"role": "student", "name": "Fatima", "email": "fatima@example.com"}
        )

        assert isinstance(prof, Professor)
        assert prof.stars == 0.0
        assert isinstance(stud, Student)
        assert stud.subscribed_channels == frozenset()
        assert stud.followed_professors == frozenset()
        assert [e.role for e in recorder.of_type(UserRegisteredEvent)] == [
            "professor",
            "student",
        ]

    @pytest.mark.asyncio
    async def test_email_is_normalised_and_unique(self, platform) -> None:
        """Test that emails are lower-cased and duplicates conflict."""
        user = await platform.identity.create_user(
            {"role": "student", "name": "Fatima", "email": "  Fatima@Example.com "}
        )
        assert user.email == "fatima@example.com"

        with pytest.raises(EmailAlreadyExistsError) as exc_info:
            await platform.identity.create_user(
                {"role": "professor", "name": "Other", "email": "FATIMA@example.com"}
            )
        assert exc_info.value.status_code == 409
        assert platform.identity.count() == 1

    @pytest.mark.asyncio
    async def test_unknown_role_is_rejected(self, platform) -> None:
        with pytest.raises(ValidationError):
            await platform.identity.create_user(
                {"role": "admin", "name": "Root", "email": "root@example.com"}
            )

    @pytest.mark.asyncio
    async def test_invalid_email_is_rejected(self, platform) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await platform.identity.create_user(
                {"role": "student", "name": "Nobody", "email": "not-an-email"}
            )
        assert exc_info.value.context["field"].endswith("email")

    @pytest.mark.asyncio
    async def test_store_assigned_fields_cannot_be_supplied(self, platform) -> None:
        """Test that callers cannot pick their own id."""
        with pytest.raises(ValidationError):
            await platform.identity.create_user(
                {"role": "student", "id": uuid4(), "name": "Fatima", "email": "f@example.com"}
            )

    @pytest.mark.asyncio
    async def test_derived_fields_cannot_be_supplied(self, platform) -> None:
        """Test that subscriptions and stars cannot be seeded at registration."""
        with pytest.raises(ImmutableFieldError):
            await platform.identity.create_user(
                {
                    "role": "student",
                    "name": "Fatima",
                    "email": "f@example.com",
                    "subscribed_channels": [uuid4()],
                }
            )
        with pytest.raises(ImmutableFieldError):
            await platform.identity.create_user(
                {"role": "professor", "name": "Ahmed", "email": "a@example.com", "stars": 5.0}
            )

    def test_user_adapter_discriminates_on_role(self) -> None:
        user = user_adapter.validate_python(
            {"role": "professor", "name": "Ahmed", "email": "a@example.com"}
        )
        assert isinstance(user, Professor)


class TestLookups:
    """Tests for lookups, listing and search."""

    @pytest.mark.asyncio
    async def test_variant_lookups_reject_other_role(self, platform, professor, student) -> None:
        """Test that get_professor/get_student treat the wrong role as missing."""
        assert (await platform.identity.get_professor(professor.id)).id == professor.id
        assert (await platform.identity.get_student(student.id)).id == student.id

        with pytest.raises(EntityNotFoundError):
            await platform.identity.get_professor(student.id)
        with pytest.raises(EntityNotFoundError):
            await platform.identity.get_student(professor.id)
        with pytest.raises(EntityNotFoundError):
            await platform.identity.get_user(uuid4())
        assert platform.identity.find_user(uuid4()) is None

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, platform, student) -> None:
        """Test that mutating a returned record leaves the store untouched."""
        copy = await platform.identity.get_student(student.id)
        copy.name = "Changed"

        assert (await platform.identity.get_student(student.id)).name == student.name

    @pytest.mark.asyncio
    async def test_list_users_by_role(self, platform, professor, student) -> None:
        assert [u.id for u in await platform.identity.list_users()] == [professor.id, student.id]
        assert [u.id for u in await platform.identity.list_users(UserRole.STUDENT)] == [
            student.id
        ]

    @pytest.mark.asyncio
    async def test_search_professors(self, platform, professor, student) -> None:
        """Test case-insensitive professor search and filters."""
        assert [p.id for p in await platform.identity.search_professors("ahmed")] == [
            professor.id
        ]
        assert [p.id for p in await platform.identity.search_professors("algiers 1")] == [
            professor.id
        ]
        assert await platform.identity.search_professors("fatima") == []
        assert await platform.identity.search_professors(faculty="law") == []
        assert [
            p.id
            for p in await platform.identity.search_professors(
                department="Artificial Intelligence"
            )
        ] == [professor.id]


class TestUpdateUser:
    """Tests for IdentityStore.update_user."""

    @pytest.mark.asyncio
    async def test_profile_fields_merge(self, platform, student) -> None:
        updated = await platform.identity.update_user(
            student.id, {"faculty": "Medicine", "language": "fr"}
        )

        assert updated.faculty == "Medicine"
        assert updated.language == "fr"
        assert updated.name == student.name
        assert updated.updated_at >= student.updated_at

    @pytest.mark.asyncio
    async def test_role_and_id_are_immutable(self, platform, student) -> None:
        with pytest.raises(ImmutableFieldError) as exc_info:
            await platform.identity.update_user(student.id, {"role": "professor"})
        assert exc_info.value.fields == ["role"]

        with pytest.raises(ImmutableFieldError):
            await platform.identity.update_user(student.id, {"id": uuid4()})

    @pytest.mark.asyncio
    async def test_derived_fields_need_engine_access(self, platform, professor) -> None:
        """Test that stars can only be written with allow_derived."""
        with pytest.raises(ImmutableFieldError):
            await platform.identity.update_user(professor.id, {"stars": 4.5})

        updated = await platform.identity.update_user(
            professor.id, {"stars": 4.5}, allow_derived=True
        )
        assert updated.stars == 4.5

    @pytest.mark.asyncio
    async def test_unknown_fields_are_rejected(self, platform, professor) -> None:
        with pytest.raises(ValidationError):
            await platform.identity.update_user(professor.id, {"favourite_colour": "blue"})

    @pytest.mark.asyncio
    async def test_email_change_moves_index(self, platform, professor, student) -> None:
        """Test that a new email is unique and the old one is released."""
        with pytest.raises(EmailAlreadyExistsError):
            await platform.identity.update_user(student.id, {"email": professor.email})

        await platform.identity.update_user(student.id, {"email": "new@example.com"})

        assert (await platform.identity.authenticate("new@example.com", "secret")).id == student.id
        with pytest.raises(InvalidCredentialError):
            await platform.identity.authenticate("fatima@example.com", "secret")

    @pytest.mark.asyncio
    async def test_update_unknown_user(self, platform) -> None:
        with pytest.raises(EntityNotFoundError):
            await platform.identity.update_user(uuid4(), {"name": "Ghost"})


class TestAuthenticate:
    """Tests for credential checks."""

    @pytest.mark.asyncio
    async def test_valid_credential(self, platform, professor) -> None:
        user = await platform.identity.authenticate("AHMED@example.com", "secret")
        assert user.id == professor.id

    @pytest.mark.asyncio
    async def test_wrong_credential_or_email(self, platform, professor) -> None:
        with pytest.raises(InvalidCredentialError):
            await platform.identity.authenticate("ahmed@example.com", "wrong")
        with pytest.raises(InvalidCredentialError) as exc_info:
            await platform.identity.authenticate("nobody@example.com", "secret")
        assert exc_info.value.status_code == 401

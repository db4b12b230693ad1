"""
Unit tests for user service.
"""

import pytest
import pytest_asyncio
from leaguehub.services import user_service
from leaguehub.services.exceptions import NotFoundError, ConflictError
from leaguehub.database.models import TeamPlayer, UserRole, UserStatus
from conftest import create_user, create_team


@pytest_asyncio.fixture
async def users(db_session):
    admin = await create_user(db_session, "admin@example.com", name="Admin", role=UserRole.SUPERADMIN.value)
    zed = await create_user(db_session, "zed@example.com", name="Zed", level="A")
    amy = await create_user(db_session, "amy@example.com", name="Amy")
    newbie = await create_user(
        db_session, "new@example.com", name="Newbie", status=UserStatus.PENDING.value
    )
    await db_session.commit()
    return {"admin": admin.id, "zed": zed.id, "amy": amy.id, "newbie": newbie.id}


@pytest.mark.asyncio
async def test_create_user_starts_pending_player(db_session):
    user = await user_service.create_user(
        db_session, "Person@Example.com", "hash", "Person", gender="FEMALE"
    )
    assert user["role"] == UserRole.PLAYER.value
    assert user["status"] == UserStatus.PENDING.value
    assert user["level"] is None


@pytest.mark.asyncio
async def test_create_user_duplicate_email_is_case_insensitive(db_session, users):
    with pytest.raises(ConflictError):
        await user_service.create_user(db_session, "AMY@example.com", "hash", "Amy Again")


@pytest.mark.asyncio
async def test_create_user_rejects_unknown_gender(db_session):
    with pytest.raises(ValueError, match="gender"):
        await user_service.create_user(db_session, "x@example.com", "hash", "X", gender="OTHER")


@pytest.mark.asyncio
async def test_superadmin_lists_everyone_without_credentials(db_session, users):
    listed = await user_service.list_users(db_session, UserRole.SUPERADMIN.value)
    assert {u["id"] for u in listed} == set(users.values())
    assert all("password_hash" not in u for u in listed)
    assert all("email" in u for u in listed)


@pytest.mark.asyncio
async def test_superadmin_filters_by_status(db_session, users):
    listed = await user_service.list_users(
        db_session, UserRole.SUPERADMIN.value, status=UserStatus.PENDING.value
    )
    assert [u["id"] for u in listed] == [users["newbie"]]


@pytest.mark.asyncio
async def test_others_see_only_approved_public_fields(db_session, users):
    listed = await user_service.list_users(db_session, UserRole.CAPTAIN.value)
    assert [u["name"] for u in listed] == ["Admin", "Amy", "Zed"]
    assert all(set(u) == {"id", "name", "gender", "level", "image"} for u in listed)


@pytest.mark.asyncio
async def test_user_detail_visibility(db_session, users):
    team = await create_team(db_session, users["admin"], name="Alpha")
    db_session.add(TeamPlayer(team_id=team.id, player_id=users["zed"]))
    await db_session.commit()

    as_player = await user_service.get_user_detail(db_session, users["zed"], UserRole.PLAYER.value)
    assert as_player["teams"] == [{"id": team.id, "name": "Alpha", "category": "MIXED"}]
    assert "email" not in as_player
    assert "role" not in as_player

    as_admin = await user_service.get_user_detail(
        db_session, users["zed"], UserRole.SUPERADMIN.value
    )
    assert as_admin["email"] == "zed@example.com"
    assert as_admin["status"] == UserStatus.APPROVED.value


@pytest.mark.asyncio
async def test_user_detail_missing(db_session, users):
    with pytest.raises(NotFoundError):
        await user_service.get_user_detail(db_session, 9999, UserRole.SUPERADMIN.value)


@pytest.mark.asyncio
async def test_update_role(db_session, users):
    updated = await user_service.update_user_role(db_session, users["amy"], UserRole.CAPTAIN.value)
    assert updated["role"] == UserRole.CAPTAIN.value
    assert "password_hash" not in updated


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [None, "", "OWNER"])
async def test_update_role_rejects_invalid(db_session, users, role):
    with pytest.raises(ValueError, match="Invalid role"):
        await user_service.update_user_role(db_session, users["amy"], role)


@pytest.mark.asyncio
async def test_update_role_missing_user(db_session, users):
    with pytest.raises(NotFoundError):
        await user_service.update_user_role(db_session, 9999, UserRole.CAPTAIN.value)


@pytest.mark.asyncio
async def test_update_level(db_session, users):
    updated = await user_service.update_user_level(db_session, users["amy"], "MASTER")
    assert updated["level"] == "MASTER"
    with pytest.raises(ValueError, match="Invalid level"):
        await user_service.update_user_level(db_session, users["amy"], "Z")


@pytest.mark.asyncio
async def test_approve_user(db_session, users):
    updated = await user_service.set_user_status(
        db_session, users["newbie"], UserStatus.APPROVED.value
    )
    assert updated["status"] == UserStatus.APPROVED.value


@pytest.mark.asyncio
async def test_partial_update_ignores_empty_values(db_session, users):
    updated = await user_service.update_user(
        db_session, users["zed"], {"name": "Zed Prime", "level": "", "role": None}
    )
    assert updated["name"] == "Zed Prime"
    assert updated["level"] == "A"
    assert updated["role"] == UserRole.PLAYER.value


@pytest.mark.asyncio
async def test_create_superadmin_then_promote(db_session, users):
    created = await user_service.create_or_promote_superadmin(
        db_session, "boss@example.com", "hash"
    )
    assert created["created"] is True
    assert created["user"]["role"] == UserRole.SUPERADMIN.value
    boss = await user_service.get_user_by_email(db_session, "boss@example.com")
    assert boss["name"] == "boss"
    assert boss["status"] == UserStatus.APPROVED.value

    promoted = await user_service.create_or_promote_superadmin(
        db_session, "new@example.com", "new-hash"
    )
    assert promoted["created"] is False
    newbie = await user_service.get_user_by_id(db_session, users["newbie"])
    assert newbie["role"] == UserRole.SUPERADMIN.value
    assert newbie["status"] == UserStatus.APPROVED.value
    assert newbie["password_hash"] == "new-hash"

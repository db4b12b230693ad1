"""
Unit tests for notification service.

Covers listing, read state and the combined badge count.
"""

import pytest
import pytest_asyncio
from leaguehub.services import notification_service
from leaguehub.services.exceptions import NotFoundError
from leaguehub.database.models import (
    InvitationStatus,
    MatchRequestStatus,
    NotificationType,
    UserRole,
)
from conftest import (
    create_user,
    create_team,
    create_invitation,
    create_league,
    create_match_request,
    create_notification,
)


@pytest_asyncio.fixture
async def people(db_session):
    player = await create_user(db_session, "player@example.com", name="Pat Player")
    captain = await create_user(db_session, "captain@example.com", role=UserRole.CAPTAIN.value)
    other = await create_user(db_session, "other@example.com", name="Olly Other")
    manager = await create_user(db_session, "manager@example.com", role=UserRole.MANAGER.value)
    await db_session.commit()
    return {"player": player.id, "captain": captain.id, "other": other.id, "manager": manager.id}


# ──────────────────────────────────────────────────────────────
# Badge count
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_count_is_zero_without_activity(db_session, people):
    counts = await notification_service.get_notification_counts(
        db_session, people["player"], UserRole.PLAYER.value
    )
    assert counts == {"count": 0, "notifications": 0, "invitations": 0, "matchRequests": 0}


@pytest.mark.asyncio
async def test_player_count_sums_all_three_sources(db_session, people):
    team = await create_team(db_session, people["captain"])
    league = await create_league(db_session, created_by=people["manager"])

    # 2 unread, 1 read
    await create_notification(db_session, people["player"])
    await create_notification(db_session, people["player"])
    await create_notification(db_session, people["player"], is_read=True)
    # 1 pending invitation addressed to the player, 1 already answered
    await create_invitation(db_session, team.id, people["player"])
    other_team = await create_team(db_session, people["captain"], name="Other Team")
    await create_invitation(
        db_session, other_team.id, people["player"], status=InvitationStatus.REJECTED.value
    )
    # 1 pending request as opponent, 1 sent by the player, 1 accepted
    await create_match_request(db_session, league.id, people["other"], people["player"])
    await create_match_request(db_session, league.id, people["player"], people["other"])
    await create_match_request(
        db_session,
        league.id,
        people["manager"],
        people["player"],
        status=MatchRequestStatus.ACCEPTED.value,
    )
    await db_session.commit()

    counts = await notification_service.get_notification_counts(
        db_session, people["player"], UserRole.PLAYER.value
    )
    assert counts["notifications"] == 2
    assert counts["invitations"] == 1
    assert counts["matchRequests"] == 1
    assert counts["count"] == 4


@pytest.mark.asyncio
async def test_captain_counts_invitations_of_captained_teams(db_session, people):
    team_a = await create_team(db_session, people["captain"], name="A")
    team_b = await create_team(db_session, people["captain"], name="B")
    await create_invitation(db_session, team_a.id, people["player"])
    await create_invitation(db_session, team_b.id, people["other"])
    await db_session.commit()

    counts = await notification_service.get_notification_counts(
        db_session, people["captain"], UserRole.CAPTAIN.value
    )
    assert counts["invitations"] == 2
    assert counts["count"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.MANAGER.value, UserRole.SUPERADMIN.value])
async def test_other_roles_have_no_invitation_count(db_session, people, role):
    team = await create_team(db_session, people["manager"])
    await create_invitation(db_session, team.id, people["manager"])
    await create_notification(db_session, people["manager"])
    await db_session.commit()

    counts = await notification_service.get_notification_counts(
        db_session, people["manager"], role
    )
    assert counts["invitations"] == 0
    assert counts["count"] == counts["notifications"] + counts["matchRequests"] == 1


@pytest.mark.asyncio
async def test_count_reflects_changes_immediately(db_session, people):
    notification = await create_notification(db_session, people["player"])
    await db_session.commit()

    before = await notification_service.get_notification_counts(
        db_session, people["player"], UserRole.PLAYER.value
    )
    await notification_service.mark_as_read(db_session, notification.id, people["player"])
    after = await notification_service.get_notification_counts(
        db_session, people["player"], UserRole.PLAYER.value
    )
    assert before["count"] == 1
    assert after["count"] == 0


# ──────────────────────────────────────────────────────────────
# Listing and read state
# ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_includes_match_request_summary(db_session, people):
    league = await create_league(db_session, created_by=people["manager"], name="Spring League")
    match_request = await create_match_request(
        db_session, league.id, people["other"], people["player"]
    )
    await notification_service.create_notification(
        db_session,
        user_id=people["player"],
        type=NotificationType.MATCH_REQUEST.value,
        message="Olly sent you a match request",
        match_request_id=match_request.id,
    )
    await db_session.commit()

    notifications = await notification_service.get_user_notifications(
        db_session, people["player"]
    )
    assert len(notifications) == 1
    summary = notifications[0]["match_request"]
    assert summary["requester"]["name"] == "Olly Other"
    assert summary["opponent"]["name"] == "Pat Player"
    assert summary["league"]["name"] == "Spring League"
    assert notifications[0]["match"] is None


@pytest.mark.asyncio
async def test_list_is_limited_and_newest_first(db_session, people):
    for i in range(55):
        await create_notification(db_session, people["player"], message=f"n{i}")
    await db_session.commit()

    notifications = await notification_service.get_user_notifications(
        db_session, people["player"]
    )
    assert len(notifications) == 50
    assert notifications[0]["message"] == "n54"


@pytest.mark.asyncio
async def test_unread_only(db_session, people):
    await create_notification(db_session, people["player"], message="unread")
    await create_notification(db_session, people["player"], message="read", is_read=True)
    await db_session.commit()

    notifications = await notification_service.get_user_notifications(
        db_session, people["player"], unread_only=True
    )
    assert [n["message"] for n in notifications] == ["unread"]


@pytest.mark.asyncio
async def test_mark_as_read_requires_owner(db_session, people):
    notification = await create_notification(db_session, people["player"])
    await db_session.commit()

    with pytest.raises(NotFoundError):
        await notification_service.mark_as_read(db_session, notification.id, people["other"])

    updated = await notification_service.mark_as_read(
        db_session, notification.id, people["player"]
    )
    assert updated["is_read"] is True
    assert updated["read_at"] is not None


@pytest.mark.asyncio
async def test_mark_all_as_read(db_session, people):
    await create_notification(db_session, people["player"])
    await create_notification(db_session, people["player"])
    await create_notification(db_session, people["other"])
    await db_session.commit()

    assert await notification_service.mark_all_as_read(db_session, people["player"]) == 2
    assert await notification_service.get_unread_count(db_session, people["player"]) == 0
    assert await notification_service.get_unread_count(db_session, people["other"]) == 1


@pytest.mark.asyncio
async def test_create_notification_requires_message(db_session, people):
    with pytest.raises(ValueError):
        await notification_service.create_notification(
            db_session, user_id=people["player"], type=NotificationType.MATCH_MESSAGE.value, message=""
        )

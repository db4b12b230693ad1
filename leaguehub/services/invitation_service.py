"""
Team invitation service.

Captains invite players to their teams; the invited player (or a
superadmin acting on their behalf) accepts or rejects exactly once.
"""

from typing import Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from leaguehub.database.models import (
    Invitation,
    InvitationStatus,
    NotificationType,
    Team,
    TeamCategory,
    TeamPlayer,
    User,
    UserRole,
)
from leaguehub.services import notification_service
from leaguehub.services.exceptions import NotFoundError, PermissionDeniedError, ConflictError
from leaguehub.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)


def _invitation_to_dict(invitation: Invitation, include_player: bool = True) -> Dict:
    invitation_dict = {
        "id": invitation.id,
        "team_id": invitation.team_id,
        "player_id": invitation.player_id,
        "invited_by": invitation.invited_by,
        "status": invitation.status,
        "created_at": isoformat_or_none(invitation.created_at),
        "team": {
            "id": invitation.team.id,
            "name": invitation.team.name,
            "category": invitation.team.category,
        },
    }
    if include_player:
        invitation_dict["player"] = {
            "id": invitation.player.id,
            "name": invitation.player.name,
            "gender": invitation.player.gender,
            "level": invitation.player.level,
        }
    return invitation_dict


def _captained_team_ids(user_id: int):
    return select(Team.id).where(Team.captain_id == user_id)


async def list_invitations(session: AsyncSession, user_id: int, role: str) -> List[Dict]:
    """
    List the invitations visible to a user, newest first.

    SUPERADMIN sees all invitations, PLAYER sees their own, CAPTAIN sees
    those sent for teams they captain. Other roles see none.
    """
    query = select(Invitation).options(
        selectinload(Invitation.team), selectinload(Invitation.player)
    )

    if role == UserRole.SUPERADMIN.value:
        include_player = True
    elif role == UserRole.PLAYER.value:
        query = query.where(Invitation.player_id == user_id)
        include_player = False
    elif role == UserRole.CAPTAIN.value:
        query = query.where(Invitation.team_id.in_(_captained_team_ids(user_id)))
        include_player = True
    else:
        return []

    result = await session.execute(
        query.order_by(Invitation.created_at.desc(), Invitation.id.desc())
    )
    return [_invitation_to_dict(inv, include_player) for inv in result.scalars().all()]


async def count_pending_invitations(session: AsyncSession, user_id: int, role: str) -> int:
    """
    Count pending invitations relevant to the user.

    PLAYER: invitations addressed to them. CAPTAIN: invitations for any team
    they captain. Every other role: 0.
    """
    if role == UserRole.PLAYER.value:
        condition = Invitation.player_id == user_id
    elif role == UserRole.CAPTAIN.value:
        condition = Invitation.team_id.in_(_captained_team_ids(user_id))
    else:
        return 0

    result = await session.execute(
        select(func.count())
        .select_from(Invitation)
        .where(condition, Invitation.status == InvitationStatus.PENDING.value)
    )
    return result.scalar_one() or 0


async def create_invitation(
    session: AsyncSession, captain_id: int, team_id: int, player_id: int
) -> Dict:
    """
    Invite a player to a team the caller captains.

    MALE and FEMALE teams only accept players of the same gender; MIXED
    teams accept anyone. The invited player is notified.

    Raises:
        PermissionDeniedError: If the caller does not captain the team
        NotFoundError: If the player does not exist
        ValueError: On gender mismatch
        ConflictError: If the player was already invited to the team
    """
    team_result = await session.execute(
        select(Team).where(Team.id == team_id, Team.captain_id == captain_id)
    )
    team = team_result.scalar_one_or_none()
    if not team:
        raise PermissionDeniedError("Only the team captain can invite players")

    player_result = await session.execute(select(User).where(User.id == player_id))
    player = player_result.scalar_one_or_none()
    if not player:
        raise NotFoundError("Player not found")

    if team.category == TeamCategory.MALE.value and player.gender != TeamCategory.MALE.value:
        raise ValueError("Only male players can be invited to a male team")
    if team.category == TeamCategory.FEMALE.value and player.gender != TeamCategory.FEMALE.value:
        raise ValueError("Only female players can be invited to a female team")

    # One invitation per (team, player), whatever its status: a player who
    # rejected stays rejected and is not re-invited to the same team.
    existing = await session.execute(
        select(Invitation.id).where(
            Invitation.team_id == team_id, Invitation.player_id == player_id
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Invitation already exists")

    invitation = Invitation(
        team_id=team_id,
        player_id=player_id,
        invited_by=captain_id,
        status=InvitationStatus.PENDING.value,
    )
    session.add(invitation)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Invitation already exists")

    await notification_service.create_notification(
        session=session,
        user_id=player_id,
        type=NotificationType.TEAM_INVITATION.value,
        message=f"You have been invited to join {team.name}",
        link_url="/player",
    )
    await session.commit()

    result = await session.execute(
        select(Invitation)
        .where(Invitation.id == invitation.id)
        .options(selectinload(Invitation.team), selectinload(Invitation.player))
        .execution_options(populate_existing=True)
    )
    logger.info(f"User {captain_id} invited player {player_id} to team {team_id}")
    return _invitation_to_dict(result.scalar_one())


async def resolve_invitation(
    session: AsyncSession, invitation_id: int, acting_user_id: int, acting_role: str, accept: bool
) -> Dict:
    """
    Accept or reject a pending invitation.

    The status change is a conditional update on status = PENDING, and the
    team membership insert runs in the same transaction, so two concurrent
    accepts produce one transition and one TeamPlayer row.

    Args:
        session: Database session
        invitation_id: Invitation to resolve
        acting_user_id: User performing the action
        acting_role: Their role (SUPERADMIN may act for the player)
        accept: True to accept, False to reject

    Returns:
        Dict with success flag and the new status

    Raises:
        NotFoundError: If the invitation does not exist
        PermissionDeniedError: If the user is neither the invitee nor a superadmin
        ConflictError: If the invitation was already processed, the player
            is already on the team or the team is full
    """
    result = await session.execute(select(Invitation).where(Invitation.id == invitation_id))
    invitation = result.scalar_one_or_none()
    if not invitation:
        raise NotFoundError("Invitation not found")

    is_superadmin = acting_role == UserRole.SUPERADMIN.value
    if not is_superadmin and invitation.player_id != acting_user_id:
        raise PermissionDeniedError("Only the invited player can respond to this invitation")

    if invitation.status != InvitationStatus.PENDING.value:
        raise ConflictError("Invitation already processed")

    new_status = InvitationStatus.ACCEPTED.value if accept else InvitationStatus.REJECTED.value
    team_id, player_id = invitation.team_id, invitation.player_id

    team_result = await session.execute(select(Team).where(Team.id == team_id))
    team = team_result.scalar_one()
    roster_size = 0
    if accept and team.max_players is not None:
        roster_result = await session.execute(
            select(func.count()).select_from(TeamPlayer).where(TeamPlayer.team_id == team_id)
        )
        roster_size = roster_result.scalar_one()
        if roster_size >= team.max_players:
            raise ConflictError(f"Team has reached its maximum of {team.max_players} players")

    try:
        transition = await session.execute(
            update(Invitation)
            .where(
                Invitation.id == invitation_id,
                Invitation.status == InvitationStatus.PENDING.value,
            )
            .values(status=new_status)
        )
        if transition.rowcount == 0:
            # Another request resolved it between our read and our update
            raise ConflictError("Invitation already processed")

        if accept:
            membership = await session.execute(
                select(TeamPlayer.id).where(
                    TeamPlayer.team_id == team_id, TeamPlayer.player_id == player_id
                )
            )
            if membership.scalar_one_or_none() is None:
                session.add(TeamPlayer(team_id=team_id, player_id=player_id))
                await session.flush()
                roster_size += 1

            if team.max_players is not None and roster_size >= team.max_players:
                await session.execute(
                    update(Invitation)
                    .where(
                        Invitation.team_id == team_id,
                        Invitation.status == InvitationStatus.PENDING.value,
                    )
                    .values(status=InvitationStatus.REJECTED.value)
                )

        await session.commit()
    except ConflictError:
        await session.rollback()
        raise
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Player already in team")

    logger.info(
        f"Invitation {invitation_id} {new_status.lower()} by user {acting_user_id}"
    )
    return {"success": True, "status": new_status}

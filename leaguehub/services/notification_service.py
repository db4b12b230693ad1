"""
Notification service for managing user notifications.

Handles creation, retrieval, status updates, and the badge count that
combines unread notifications with pending invitations and match requests.
"""

from typing import List, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_
from sqlalchemy.orm import selectinload
from leaguehub.database.models import Notification, MatchRequest
from leaguehub.services.exceptions import NotFoundError
from leaguehub.utils.constants import NOTIFICATION_LIST_LIMIT
from leaguehub.utils.datetime_utils import utcnow, isoformat_or_none
import logging

logger = logging.getLogger(__name__)


def _notification_to_dict(notification: Notification) -> Dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "message": notification.message,
        "is_read": notification.is_read,
        "read_at": isoformat_or_none(notification.read_at),
        "link_url": notification.link_url,
        "match_request_id": notification.match_request_id,
        "match_id": notification.match_id,
        "created_at": isoformat_or_none(notification.created_at),
    }


def _match_request_summary(match_request: Optional[MatchRequest]) -> Optional[Dict]:
    if match_request is None:
        return None
    return {
        "id": match_request.id,
        "requester_id": match_request.requester_id,
        "opponent_id": match_request.opponent_id,
        "status": match_request.status,
        "message": match_request.message,
        "suggested_date": isoformat_or_none(match_request.suggested_date),
        "suggested_time": match_request.suggested_time,
        "requester": {"id": match_request.requester.id, "name": match_request.requester.name},
        "opponent": {"id": match_request.opponent.id, "name": match_request.opponent.name},
        "league": {"id": match_request.league.id, "name": match_request.league.name},
    }


async def create_notification(
    session: AsyncSession,
    user_id: int,
    type: str,
    message: str,
    link_url: Optional[str] = None,
    match_request_id: Optional[int] = None,
    match_id: Optional[int] = None,
) -> Dict:
    """
    Create a single notification for a user.

    Args:
        session: Database session
        user_id: ID of the user to notify
        type: Notification type (NotificationType enum value)
        message: Notification message text
        link_url: Optional URL for navigation when notification is clicked
        match_request_id: Optional related match request
        match_id: Optional related match

    Returns:
        Dict containing the created notification data

    Raises:
        ValueError: If required fields are missing
    """
    if not user_id:
        raise ValueError("user_id is required")
    if not type:
        raise ValueError("type is required")
    if not message:
        raise ValueError("message is required")

    notification = Notification(
        user_id=user_id,
        type=type,
        message=message,
        link_url=link_url,
        match_request_id=match_request_id,
        match_id=match_id,
        is_read=False,
    )

    session.add(notification)
    await session.flush()
    await session.refresh(notification)

    return _notification_to_dict(notification)


async def create_notifications_bulk(
    session: AsyncSession,
    notifications_list: List[Dict]
) -> List[Dict]:
    """
    Create multiple notifications in one flush.

    Args:
        session: Database session
        notifications_list: List of dicts with user_id, type, message and
            optional link_url, match_request_id, match_id

    Returns:
        List of created notification dicts

    Raises:
        ValueError: If any notification data is invalid
    """
    if not notifications_list:
        return []

    notification_objects = []
    for notif_data in notifications_list:
        if not notif_data.get("user_id"):
            raise ValueError("user_id is required for all notifications")
        if not notif_data.get("type"):
            raise ValueError("type is required for all notifications")
        if not notif_data.get("message"):
            raise ValueError("message is required for all notifications")

        notification_objects.append(
            Notification(
                user_id=notif_data["user_id"],
                type=notif_data["type"],
                message=notif_data["message"],
                link_url=notif_data.get("link_url"),
                match_request_id=notif_data.get("match_request_id"),
                match_id=notif_data.get("match_id"),
                is_read=False,
            )
        )

    session.add_all(notification_objects)
    await session.flush()
    for notif in notification_objects:
        await session.refresh(notif)

    return [_notification_to_dict(notif) for notif in notification_objects]


async def get_user_notifications(
    session: AsyncSession,
    user_id: int,
    unread_only: bool = False,
    limit: int = NOTIFICATION_LIST_LIMIT,
) -> List[Dict]:
    """
    Fetch the user's most recent notifications, newest first.

    Each notification carries summaries of its linked match request
    (with requester, opponent and league names) and match, when present.

    Args:
        session: Database session
        user_id: ID of the user
        unread_only: If True, only return unread notifications
        limit: Maximum number of notifications to return

    Returns:
        List of notification dicts
    """
    query = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .options(
            selectinload(Notification.match_request).selectinload(MatchRequest.requester),
            selectinload(Notification.match_request).selectinload(MatchRequest.opponent),
            selectinload(Notification.match_request).selectinload(MatchRequest.league),
            selectinload(Notification.match),
        )
    )

    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712

    query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    result = await session.execute(query)

    notifications = []
    for notif in result.scalars().all():
        notif_dict = _notification_to_dict(notif)
        notif_dict["match_request"] = _match_request_summary(notif.match_request)
        notif_dict["match"] = (
            {
                "id": notif.match.id,
                "scheduled_date": isoformat_or_none(notif.match.scheduled_date),
                "status": notif.match.status,
            }
            if notif.match
            else None
        )
        notifications.append(notif_dict)
    return notifications


async def get_unread_count(session: AsyncSession, user_id: int) -> int:
    """
    Get count of unread notifications for a user.

    Args:
        session: Database session
        user_id: ID of the user

    Returns:
        Integer count of unread notifications
    """
    result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(
            and_(
                Notification.user_id == user_id,
                Notification.is_read == False  # noqa: E712
            )
        )
    )
    return result.scalar_one() or 0


async def get_notification_counts(session: AsyncSession, user_id: int, role: str) -> Dict:
    """
    Compute the notification badge count for a user.

    The total is the sum of three independent counts, recomputed on every
    call: unread notifications, pending invitations visible to the user's
    role, and pending match requests where the user is the opponent.

    Args:
        session: Database session
        user_id: ID of the user
        role: The user's UserRole value

    Returns:
        Dict with count (total), notifications, invitations and matchRequests
    """
    from leaguehub.services import invitation_service, match_request_service

    notification_count = await get_unread_count(session, user_id)
    invitation_count = await invitation_service.count_pending_invitations(session, user_id, role)
    match_request_count = await match_request_service.count_pending_for_opponent(session, user_id)

    return {
        "count": notification_count + invitation_count + match_request_count,
        "notifications": notification_count,
        "invitations": invitation_count,
        "matchRequests": match_request_count,
    }


async def mark_as_read(
    session: AsyncSession,
    notification_id: int,
    user_id: int
) -> Dict:
    """
    Mark a single notification as read.

    Args:
        session: Database session
        notification_id: ID of the notification
        user_id: ID of the user (ensures user owns the notification)

    Returns:
        Updated notification dict

    Raises:
        NotFoundError: If notification not found or doesn't belong to user
    """
    result = await session.execute(
        select(Notification).where(
            and_(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
    )
    notification = result.scalar_one_or_none()

    if not notification:
        raise NotFoundError("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        await session.flush()
        await session.refresh(notification)

    return _notification_to_dict(notification)


async def mark_all_as_read(session: AsyncSession, user_id: int) -> int:
    """
    Mark all user notifications as read.

    Args:
        session: Database session
        user_id: ID of the user

    Returns:
        Count of notifications marked as read
    """
    result = await session.execute(
        update(Notification)
        .where(
            and_(
                Notification.user_id == user_id,
                Notification.is_read == False  # noqa: E712
            )
        )
        .values(
            is_read=True,
            read_at=utcnow()
        )
    )
    await session.flush()
    return result.rowcount or 0

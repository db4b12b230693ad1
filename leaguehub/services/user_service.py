"""
User service layer for account, role, level and approval operations.
"""

from typing import Optional, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload
from leaguehub.database.models import (
    User,
    UserRole,
    UserStatus,
    Gender,
    PlayerLevel,
    TeamPlayer,
)
from leaguehub.services.exceptions import NotFoundError, ConflictError
from leaguehub.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)

USER_ROLES = {r.value for r in UserRole}
USER_STATUSES = {s.value for s in UserStatus}
GENDERS = {g.value for g in Gender}
PLAYER_LEVELS = {lvl.value for lvl in PlayerLevel}


def _user_to_dict(user: User) -> Dict:
    """
    Convert a User ORM instance to a dictionary.

    Args:
        user: User ORM instance

    Returns:
        User dictionary (includes password_hash; never return it from a route)
    """
    return {
        "id": user.id,
        "email": user.email,
        "password_hash": user.password_hash,
        "name": user.name,
        "image": user.image,
        "role": user.role,
        "status": user.status,
        "gender": user.gender,
        "level": user.level,
        "created_at": isoformat_or_none(user.created_at),
        "updated_at": isoformat_or_none(user.updated_at),
    }


def public_user(user: Dict) -> Dict:
    """Strip credentials from a user dictionary."""
    return {k: v for k, v in user.items() if k != "password_hash"}


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[Dict]:
    """
    Get user by email (case-insensitive).

    Args:
        session: Database session
        email: Email address

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower()).limit(1)
    )
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: str,
    name: str,
    gender: Optional[str] = None,
) -> Dict:
    """
    Register a new player account awaiting approval.

    The account starts as PLAYER with status PENDING and no level; a
    superadmin approves it and a captain or above assigns the level.

    Raises:
        ConflictError: If the email is already registered
        ValueError: If gender is not a known value
    """
    if gender is not None and gender not in GENDERS:
        raise ValueError("Invalid gender")

    if await get_user_by_email(session, email):
        raise ConflictError("A user with this email address already exists")

    user = User(
        email=email,
        password_hash=password_hash,
        name=name,
        gender=gender,
        level=None,
        role=UserRole.PLAYER.value,
        status=UserStatus.PENDING.value,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    await session.commit()

    logger.info(f"Registered user {user.id} ({email}), awaiting approval")
    return _user_to_dict(user)


async def list_users(
    session: AsyncSession,
    viewer_role: str,
    status: Optional[str] = None,
    role: Optional[str] = None,
) -> List[Dict]:
    """
    List users, filtered by status and role.

    SUPERADMIN sees every user with account fields. Other roles only see
    APPROVED users and only their public profile fields.
    """
    query = select(User)
    if role:
        query = query.where(User.role == role)

    if viewer_role == UserRole.SUPERADMIN.value:
        if status:
            query = query.where(User.status == status)
        result = await session.execute(query.order_by(User.created_at.desc(), User.id.desc()))
        return [public_user(_user_to_dict(u)) for u in result.scalars().all()]

    query = query.where(User.status == UserStatus.APPROVED.value)
    result = await session.execute(query.order_by(User.name.asc()))
    return [
        {
            "id": u.id,
            "name": u.name,
            "gender": u.gender,
            "level": u.level,
            "image": u.image,
        }
        for u in result.scalars().all()
    ]


async def get_user_detail(session: AsyncSession, user_id: int, viewer_role: str) -> Dict:
    """
    Get a user's profile with team memberships.

    Email, status and role are only included for a SUPERADMIN viewer.

    Raises:
        NotFoundError: If the user does not exist
    """
    result = await session.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.team_memberships).selectinload(TeamPlayer.team))
    )
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")

    detail = {
        "id": user.id,
        "name": user.name,
        "gender": user.gender,
        "level": user.level,
        "image": user.image,
        "created_at": isoformat_or_none(user.created_at),
        "teams": [
            {
                "id": tp.team.id,
                "name": tp.team.name,
                "category": tp.team.category,
            }
            for tp in user.team_memberships
        ],
    }
    if viewer_role == UserRole.SUPERADMIN.value:
        detail["email"] = user.email
        detail["status"] = user.status
        detail["role"] = user.role
    return detail


async def _update_user_fields(session: AsyncSession, user_id: int, values: Dict) -> Dict:
    result = await session.execute(
        update(User).where(User.id == user_id).values(**values)
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found")
    await session.commit()
    user = await get_user_by_id(session, user_id)
    return public_user(user)


async def update_user_role(session: AsyncSession, user_id: int, role: Optional[str]) -> Dict:
    """
    Change a user's role.

    Raises:
        ValueError: If role is missing or unknown
        NotFoundError: If the user does not exist
    """
    if not role or role not in USER_ROLES:
        raise ValueError("Invalid role")
    logger.info(f"Setting role of user {user_id} to {role}")
    return await _update_user_fields(session, user_id, {"role": role})


async def update_user_level(session: AsyncSession, user_id: int, level: Optional[str]) -> Dict:
    """
    Change a player's level.

    Raises:
        ValueError: If level is missing or unknown
        NotFoundError: If the user does not exist
    """
    if not level or level not in PLAYER_LEVELS:
        raise ValueError("Invalid level")
    return await _update_user_fields(session, user_id, {"level": level})


async def set_user_status(session: AsyncSession, user_id: int, status: str) -> Dict:
    """
    Approve a pending user (or move an approved one back to pending).

    Raises:
        ValueError: If status is unknown
        NotFoundError: If the user does not exist
    """
    if status not in USER_STATUSES:
        raise ValueError("Invalid status")
    logger.info(f"Setting status of user {user_id} to {status}")
    return await _update_user_fields(session, user_id, {"status": status})


async def update_user(session: AsyncSession, user_id: int, fields: Dict) -> Dict:
    """
    Partially update a user's profile and account fields.

    Only truthy values among name, gender, level, role and status are applied.

    Raises:
        ValueError: If an enum field has an unknown value
        NotFoundError: If the user does not exist
    """
    allowed = {
        "name": None,
        "gender": GENDERS,
        "level": PLAYER_LEVELS,
        "role": USER_ROLES,
        "status": USER_STATUSES,
    }
    values = {}
    for key, choices in allowed.items():
        value = fields.get(key)
        if not value:
            continue
        if choices is not None and value not in choices:
            raise ValueError(f"Invalid {key}")
        values[key] = value

    if not values:
        user = await get_user_by_id(session, user_id)
        if not user:
            raise NotFoundError("User not found")
        return public_user(user)

    return await _update_user_fields(session, user_id, values)


async def create_or_promote_superadmin(
    session: AsyncSession, email: str, password_hash: str, name: Optional[str] = None
) -> Dict:
    """
    Ensure an APPROVED SUPERADMIN account exists for the email.

    An existing account is promoted and its password replaced; otherwise a
    new account is created, named after the email's local part by default.

    Returns:
        Dict with "created" flag and the user's id, email and role
    """
    existing = await get_user_by_email(session, email)
    if existing:
        await session.execute(
            update(User)
            .where(User.id == existing["id"])
            .values(
                password_hash=password_hash,
                role=UserRole.SUPERADMIN.value,
                status=UserStatus.APPROVED.value,
            )
        )
        await session.commit()
        logger.info(f"Promoted user {existing['id']} to superadmin")
        return {
            "created": False,
            "user": {"id": existing["id"], "email": existing["email"], "role": UserRole.SUPERADMIN.value},
        }

    user = User(
        email=email,
        password_hash=password_hash,
        name=name or email.split("@")[0],
        role=UserRole.SUPERADMIN.value,
        status=UserStatus.APPROVED.value,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    await session.commit()
    logger.info(f"Created superadmin user {user.id}")
    return {"created": True, "user": {"id": user.id, "email": user.email, "role": user.role}}

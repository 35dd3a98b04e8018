"""Role checks for circle members.

Roles are always passed around explicitly; nothing here reads the current
user from ambient request state.
"""
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from circle.models.circle import CircleMember, CircleRole

MANAGER_ROLES = frozenset({CircleRole.owner, CircleRole.admin})


def can_manage_circle(role) -> bool:
    """Circle settings, role changes: owner only."""
    return role == CircleRole.owner


def can_manage_content(role) -> bool:
    """Events, payments, history: owner or admin."""
    return role in MANAGER_ROLES


def is_member(role) -> bool:
    return role in (CircleRole.owner, CircleRole.admin, CircleRole.member)


def get_member_role(db: Session, circle_id: str, user_id: str) -> CircleRole:
    """Return the user's role in the circle, or 403 if they are not a member."""
    member = (
        db.query(CircleMember)
        .filter(CircleMember.circle_id == circle_id, CircleMember.user_id == user_id)
        .first()
    )
    if not member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a member of this circle",
        )
    return member.role


def require_manager(db: Session, circle_id: str, user_id: str) -> CircleRole:
    role = get_member_role(db, circle_id, user_id)
    if not can_manage_content(role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Requires owner or admin role, but user has: {role.value}",
        )
    return role

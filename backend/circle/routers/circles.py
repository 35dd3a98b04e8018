"""Circle management API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from circle.config import settings
from circle.database import get_db
from circle.models.circle import Circle, CircleMember, CircleRole
from circle.models.user import User
from circle.schemas.circle import (
    CircleCreate, CircleJoin, CircleMemberAdd, CircleMemberOut, CircleOut, CircleRoleUpdate,
)
from circle.services.permissions import can_manage_circle, get_member_role, require_manager

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_circle(db: Session, circle_id: str) -> Circle:
    circle = db.query(Circle).filter(Circle.circle_id == circle_id).first()
    if not circle:
        raise HTTPException(status_code=404, detail="Circle not found")
    return circle


def _get_membership(db: Session, circle_id: str, user_id: str) -> CircleMember:
    member = (
        db.query(CircleMember)
        .filter(CircleMember.circle_id == circle_id, CircleMember.user_id == user_id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=404, detail="Membership not found")
    return member


def _add_member(db: Session, circle: Circle, user_id: str, role: CircleRole) -> CircleMember:
    if not db.query(User).filter(User.user_id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    existing = (
        db.query(CircleMember)
        .filter(CircleMember.circle_id == circle.circle_id, CircleMember.user_id == user_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="User is already a member of this circle")

    member_count = db.query(CircleMember).filter(CircleMember.circle_id == circle.circle_id).count()
    if member_count >= circle.member_limit:
        raise HTTPException(
            status_code=409,
            detail=f"Circle has reached its member limit of {circle.member_limit}",
        )

    member = CircleMember(circle_id=circle.circle_id, user_id=user_id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("Added user %s to circle %s as %s", user_id, circle.circle_id, role.value)
    return member


@router.post("/", response_model=CircleOut, status_code=status.HTTP_201_CREATED)
def create_circle(payload: CircleCreate, db: Session = Depends(get_db)):
    """Create a new circle. Creator is automatically added as owner."""
    creator = db.query(User).filter(User.user_id == payload.created_by).first()
    if not creator:
        raise HTTPException(status_code=404, detail="Creator user not found")

    circle = Circle(
        name=payload.name,
        created_by=payload.created_by,
        member_limit=payload.member_limit or settings.DEFAULT_MEMBER_LIMIT,
    )
    db.add(circle)
    db.flush()

    db.add(CircleMember(circle_id=circle.circle_id, user_id=payload.created_by, role=CircleRole.owner))
    db.commit()
    db.refresh(circle)
    logger.info("Created circle '%s' (%s) by user %s", circle.name, circle.circle_id, payload.created_by)
    return circle


@router.get("/{circle_id}", response_model=CircleOut)
def get_circle(circle_id: str, db: Session = Depends(get_db)):
    """Fetch a single circle by ID with members."""
    return _get_circle(db, circle_id)


@router.post("/join", response_model=CircleMemberOut, status_code=status.HTTP_201_CREATED)
def join_circle(payload: CircleJoin, db: Session = Depends(get_db)):
    """Join a circle as a member using its join code."""
    circle = db.query(Circle).filter(Circle.join_code == payload.join_code.strip().upper()).first()
    if not circle:
        raise HTTPException(status_code=404, detail="Invalid join code")
    return _add_member(db, circle, payload.user_id, CircleRole.member)


@router.post("/{circle_id}/members", response_model=CircleMemberOut, status_code=status.HTTP_201_CREATED)
def add_member(
    circle_id: str,
    payload: CircleMemberAdd,
    actor_user_id: str = Query(..., description="ID of the owner/admin adding the member"),
    db: Session = Depends(get_db),
):
    """Add a member to a circle (owner/admin only)."""
    circle = _get_circle(db, circle_id)
    actor_role = require_manager(db, circle_id, actor_user_id)
    try:
        role = CircleRole(payload.role)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid role: {payload.role}")
    if role != CircleRole.member and not can_manage_circle(actor_role):
        raise HTTPException(status_code=403, detail="Only the owner may grant admin roles")
    if role == CircleRole.owner:
        raise HTTPException(status_code=400, detail="A circle has exactly one owner")
    return _add_member(db, circle, payload.user_id, role)


@router.patch("/{circle_id}/members/{user_id}", response_model=CircleMemberOut)
def change_role(
    circle_id: str,
    user_id: str,
    payload: CircleRoleUpdate,
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Promote or demote a member (owner only)."""
    _get_circle(db, circle_id)
    if not can_manage_circle(get_member_role(db, circle_id, actor_user_id)):
        raise HTTPException(status_code=403, detail="Only the owner may change roles")
    member = _get_membership(db, circle_id, user_id)
    try:
        role = CircleRole(payload.role)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid role: {payload.role}")
    if role == CircleRole.owner or member.role == CircleRole.owner:
        raise HTTPException(status_code=400, detail="The owner role cannot be reassigned")

    member.role = role
    db.commit()
    db.refresh(member)
    logger.info("User %s in circle %s is now %s", user_id, circle_id, role.value)
    return member


@router.delete("/{circle_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    circle_id: str,
    user_id: str,
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Remove a member from a circle (owner/admin only; the owner cannot be removed)."""
    require_manager(db, circle_id, actor_user_id)
    member = _get_membership(db, circle_id, user_id)
    if member.role == CircleRole.owner:
        raise HTTPException(status_code=400, detail="The owner cannot be removed")
    db.delete(member)
    db.commit()
    logger.info("Removed user %s from circle %s", user_id, circle_id)

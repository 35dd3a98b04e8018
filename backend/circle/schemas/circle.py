"""Pydantic schemas for Circles and membership."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class CircleCreate(BaseModel):
    name: str
    created_by: str
    member_limit: Optional[int] = None


class CircleOut(BaseModel):
    circle_id: str
    name: str
    join_code: str
    member_limit: int
    created_by: str
    created_at: datetime
    members: list[CircleMemberOut] = []

    model_config = {"from_attributes": True}


class CircleMemberAdd(BaseModel):
    user_id: str
    role: str = "member"


class CircleJoin(BaseModel):
    join_code: str
    user_id: str


class CircleRoleUpdate(BaseModel):
    role: str


class CircleMemberOut(BaseModel):
    user_id: str
    role: str
    joined_at: datetime

    model_config = {"from_attributes": True}


# Rebuild CircleOut now that CircleMemberOut is defined
CircleOut.model_rebuild()

from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .auth import User, get_current_user
from ..db import get_db
from ..models import UserProfile


router = APIRouter(prefix="/users", tags=["users"])


class ProfileRequest(BaseModel):
	name: str
	email: str
	job_role: str
	experience: Literal["Junior", "Mid", "Senior"]


class ProfileResponse(BaseModel):
	username: str
	name: str
	email: str
	job_role: str
	experience: str
	created_at: Optional[datetime] = None


def profile_payload(row: UserProfile) -> ProfileResponse:
	return ProfileResponse(
		username=row.username,
		name=row.name,
		email=row.email,
		job_role=row.job_role,
		experience=row.experience,
		created_at=row.created_at,
	)


@router.put("/profile", response_model=ProfileResponse)
async def upsert_profile(req: ProfileRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	name = req.name.strip()
	email = req.email.strip()
	job_role = req.job_role.strip()
	if not name or not email or not job_role:
		raise HTTPException(status_code=400, detail="All fields are required: name, email, job_role, experience")
	row = db.get(UserProfile, user.username)
	if not row:
		row = UserProfile(username=user.username)
		db.add(row)
	row.name = name
	row.email = email
	row.job_role = job_role
	row.experience = req.experience
	db.commit()
	db.refresh(row)
	return profile_payload(row)


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(username: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if username != user.username:
		raise HTTPException(status_code=403, detail="Not allowed to view this profile")
	row = db.get(UserProfile, username)
	if not row:
		raise HTTPException(status_code=404, detail="User not found")
	return profile_payload(row)

from __future__ import annotations
from datetime import datetime
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import User, get_current_user
from .users import ProfileResponse, profile_payload
from ..db import get_db
from ..models import AssessmentResult, UserProfile
from ..schemas import StepResult
from ..scoring import build_summary, compute_score, count_outcomes

router = APIRouter(prefix="/tests", tags=["tests"])

logger = logging.getLogger(__name__)


class SubmitRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	topic: str
	difficulty: Literal["Easy", "Medium", "Hard"]
	steps: List[StepResult] = Field(min_length=1)
	ai_summary: Optional[str] = Field(default=None, alias="aiSummary")


class ResultSummary(BaseModel):
	id: int
	topic: str
	difficulty: str
	score: int
	total_steps: int
	correct_answers: int
	created_at: datetime


class ResultDetail(ResultSummary):
	username: str
	steps: List[StepResult]
	ai_summary: str
	profile: Optional[ProfileResponse] = None


def _summary(row: AssessmentResult) -> ResultSummary:
	return ResultSummary(
		id=row.id,
		topic=row.topic,
		difficulty=row.difficulty,
		score=row.score,
		total_steps=row.total_steps,
		correct_answers=row.correct_answers,
		created_at=row.created_at,
	)


@router.post("/submit", status_code=201, response_model=ResultSummary)
async def submit(req: SubmitRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	total = len(req.steps)
	correct, partial = count_outcomes(req.steps)
	row = AssessmentResult(
		username=user.username,
		topic=req.topic,
		difficulty=req.difficulty,
		total_steps=total,
		correct_answers=correct,
		score=compute_score(correct, partial, total),
		steps=[s.model_dump(by_alias=True) for s in req.steps],
		ai_summary=req.ai_summary if req.ai_summary is not None else build_summary(req.steps),
	)
	try:
		db.add(row)
		db.commit()
		db.refresh(row)
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to store test result for %s", user.username)
		raise HTTPException(status_code=500, detail="Failed to submit test results")
	logger.info("Stored test result %s for %s: %s%%", row.id, user.username, row.score)
	return _summary(row)


@router.get("/user/{username}", response_model=List[ResultSummary])
async def list_for_user(username: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if username != user.username:
		raise HTTPException(status_code=403, detail="Not allowed to view these results")
	rows = (
		db.query(AssessmentResult)
		.filter(AssessmentResult.username == username)
		.order_by(AssessmentResult.created_at.desc(), AssessmentResult.id.desc())
		.all()
	)
	return [_summary(r) for r in rows]


@router.get("/{result_id}", response_model=ResultDetail)
async def get_result(result_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	row = db.get(AssessmentResult, result_id)
	if not row:
		raise HTTPException(status_code=404, detail="Test result not found")
	if row.username != user.username:
		raise HTTPException(status_code=403, detail="Not allowed to view this result")
	profile = db.get(UserProfile, row.username)
	return ResultDetail(
		**_summary(row).model_dump(),
		username=row.username,
		steps=[StepResult.model_validate(s) for s in row.steps],
		ai_summary=row.ai_summary or "",
		profile=profile_payload(profile) if profile else None,
	)

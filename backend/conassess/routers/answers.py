from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..blanks import is_sentinel
from ..deps import consume_request, get_llm_client
from ..grading import validate_answer
from ..interviewer import interviewer_reply
from ..llm_client import LLMClient
from ..schemas import ChatMessage, Scenario, Step, ValidationResult
from .auth import User

router = APIRouter(prefix="/answers", tags=["answers"])


class ValidateRequest(BaseModel):
	answer: str
	step: Step
	scenario: Scenario = Field(default_factory=Scenario)


class ChatRequest(BaseModel):
	messages: List[ChatMessage]
	scenario: Scenario
	step_index: int = 0


@router.post("/validate", response_model=ValidationResult)
async def validate(
	req: ValidateRequest,
	user: User = Depends(consume_request),
	client: LLMClient = Depends(get_llm_client),
):
	answer = req.answer.strip()
	if not answer:
		raise HTTPException(status_code=400, detail="answer is required")
	if is_sentinel(req.step):
		# Nothing real to grade against
		return ValidationResult(correct=False, status="incorrect", feedback="This step could not be generated and cannot be graded.")
	return await validate_answer(client, answer, req.step, req.scenario)


@router.post("/chat", response_model=ChatMessage)
async def chat(
	req: ChatRequest,
	user: User = Depends(consume_request),
	client: LLMClient = Depends(get_llm_client),
):
	return await interviewer_reply(client, req.messages, req.scenario, req.step_index)

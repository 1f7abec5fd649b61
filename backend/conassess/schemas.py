from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


AnswerStatus = Literal["correct", "partially_correct", "incorrect"]
Difficulty = Literal["Junior", "Mid", "Senior"]


class Step(BaseModel):
	model_config = ConfigDict(populate_by_name=True, frozen=True)

	id: str
	instruction: str = ""
	expected_answer: str = Field(default="", alias="expectedAnswer")
	output_simulation: str = Field(default="", alias="outputSimulation")
	# Optional regex the UI may use to accept an answer without calling the validator
	command_pattern: Optional[str] = Field(default=None, alias="commandPattern")


class Scenario(BaseModel):
	model_config = ConfigDict(populate_by_name=True, frozen=True)

	id: str = ""
	title: str = ""
	description: str = ""
	difficulty: str = ""
	environment: str = ""
	context: str = ""
	code_template: str = Field(default="", alias="codeTemplate")
	steps: List[Step] = Field(default_factory=list)


class Occurrence(BaseModel):
	"""One ``___BLANK_<n>___`` marker found in a template."""

	model_config = ConfigDict(frozen=True)

	declared_index: int
	offset: int
	marker: str
	canonical_index: Optional[int] = None

	@property
	def end(self) -> int:
		return self.offset + len(self.marker)


class ValidationResult(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	correct: bool
	status: AnswerStatus
	feedback: str = ""
	corrected_answer: Optional[str] = Field(default=None, alias="correctedAnswer")


class ChatMessage(BaseModel):
	role: Literal["user", "assistant", "system"]
	content: str


class StepResult(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	step_index: int = Field(alias="stepIndex")
	instruction: str
	user_answer: str = Field(alias="userAnswer")
	expected_answer: str = Field(alias="expectedAnswer")
	correct: bool = False
	status: Optional[AnswerStatus] = None
	feedback: str = ""
	time_taken_ms: int = Field(default=0, alias="timeTakenMs")

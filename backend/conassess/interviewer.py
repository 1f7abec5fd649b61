from __future__ import annotations
import logging
from typing import List, Sequence

from .llm_client import LLMClient
from .schemas import ChatMessage, Scenario

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 150
CONNECTION_FAILED_REPLY = "I'm having trouble connecting to the interview server."


def build_interviewer_prompt(scenario: Scenario, step_index: int) -> str:
	prompt = (
		'You are a Senior Technical Interviewer for "ConAssess", an AI-powered assessment platform.\n'
		f'Current Scenario: "{scenario.title}"\n'
		f"Topic Area: {scenario.environment}\n\n"
		"Your Role:\n"
		'1. You are the "Interviewer". The user is the "Candidate" answering questions.\n'
		"2. Guide the user through the assessment steps one at a time.\n"
		"3. Be professional, concise, and encourage best practices.\n"
		"4. Do NOT give away the answer immediately. If the user is stuck, provide hints.\n"
		"5. If the user successfully completes a step (indicated by a SYSTEM_EVENT), introduce the NEXT step.\n"
		"6. Adapt your language to the topic; use domain-appropriate terminology.\n"
	)
	if 0 <= step_index < len(scenario.steps):
		# the objective is hidden from the candidate; only the interviewer sees it
		prompt += f"\nCURRENT OBJECTIVE (Hidden from user): {scenario.steps[step_index].instruction}"
	else:
		prompt += "\nCURRENT OBJECTIVE: The assessment is complete. Congratulate the user."
	return prompt


async def interviewer_reply(
	client: LLMClient,
	messages: Sequence[ChatMessage],
	scenario: Scenario,
	step_index: int,
) -> ChatMessage:
	payload: List[ChatMessage] = [ChatMessage(role="system", content=build_interviewer_prompt(scenario, step_index))]
	payload.extend(m for m in messages if m.role != "system")
	try:
		text = await client.chat(payload, temperature=CHAT_TEMPERATURE, max_tokens=CHAT_MAX_TOKENS)
	except Exception:
		logger.exception("Interviewer chat request failed")
		return ChatMessage(role="assistant", content=CONNECTION_FAILED_REPLY)
	return ChatMessage(role="assistant", content=text.strip())

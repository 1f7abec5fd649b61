from __future__ import annotations

import json
import logging
from typing import Any, Dict

from .generation import strip_code_fences
from .llm_client import LLMClient
from .schemas import ChatMessage, Scenario, Step, ValidationResult


logger = logging.getLogger(__name__)


STATUSES = ("correct", "partially_correct", "incorrect")
# Low temperature keeps grading consistent between identical answers
VALIDATION_TEMPERATURE = 0.1
VALIDATION_MAX_TOKENS = 200


def build_validation_prompt(step: Step, scenario: Scenario) -> str:
    return (
        'You are an answer validator for a technical assessment platform called "ConAssess".\n'
        f'Scenario: "{scenario.title}"\n'
        f"Topic: {scenario.environment}\n\n"
        f"CURRENT STEP INSTRUCTION: {step.instruction}\n"
        f"EXPECTED ANSWER: {step.expected_answer}\n\n"
        "The user will provide their answer. Evaluate it using THREE-TIER grading:\n"
        '1. "correct": functionally correct and demonstrates full understanding\n'
        '2. "partially_correct": right idea or direction but incomplete, minor syntax errors, or missing key details\n'
        '3. "incorrect": fundamentally wrong or unrelated\n\n'
        "The user may be using VOICE INPUT (speech-to-text), so interpret spoken input generously: "
        '"dash" -> "-", "dot" -> ".", "slash" -> "/", "equals" -> "=".\n'
        "For typed input, accept equivalent variations (shorthand vs long flags, case where the tool is "
        "case-insensitive, equivalent logic expressed differently).\n\n"
        "Respond ONLY with a JSON object (no markdown, no code fences):\n"
        '{"status": "correct"|"partially_correct"|"incorrect", "feedback": "brief explanation", '
        '"correctedAnswer": "properly formatted answer or null"}\n\n'
        "Rules:\n"
        '- "correct": encouraging feedback (1 sentence); correctedAnswer is the properly formatted version.\n'
        '- "partially_correct": say what was right and what was missing; correctedAnswer is the proper version.\n'
        '- "incorrect": explain WHY it is wrong (1-2 sentences); correctedAnswer is null.\n'
        "- This is a TEST: do NOT give hints or reveal the full answer.\n"
        "- Be LENIENT with formatting and punctuation; focus on whether the user knows the RIGHT CONCEPT."
    )


def parse_validation_reply(raw: str) -> ValidationResult:
    data: Dict[str, Any] = json.loads(strip_code_fences(raw))
    status = data.get("status")
    if status not in STATUSES:
        status = "correct" if data.get("correct") else "incorrect"
    corrected = data.get("correctedAnswer") or data.get("correctedCommand") or None
    return ValidationResult(
        correct=status == "correct",
        status=status,
        feedback=str(data.get("feedback") or ""),
        corrected_answer=str(corrected) if corrected is not None else None,
    )


async def validate_answer(client: LLMClient, answer: str, step: Step, scenario: Scenario) -> ValidationResult:
    """Grade ``answer`` against ``step``; never raises on oracle failures."""
    messages = [
        ChatMessage(role="system", content=build_validation_prompt(step, scenario)),
        ChatMessage(role="user", content=answer),
    ]
    try:
        raw = await client.chat(messages, temperature=VALIDATION_TEMPERATURE, max_tokens=VALIDATION_MAX_TOKENS)
    except Exception:
        logger.exception("Validation request failed for step %s", step.id)
        return ValidationResult(correct=False, status="incorrect", feedback="Validation service unavailable. Please try again.")
    try:
        return parse_validation_reply(raw)
    except (ValueError, AttributeError):
        logger.warning("Could not parse validation reply for step %s: %r", step.id, raw)
        return ValidationResult(correct=False, status="incorrect", feedback="Could not validate your answer. Please try again.")

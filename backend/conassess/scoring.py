from __future__ import annotations
import math
from typing import List, Sequence, Tuple

from .schemas import StepResult


def _is_correct(r: StepResult) -> bool:
	# results stored before three-tier grading have no status, only the flag
	return r.status == "correct" or (r.status is None and r.correct)


def _is_incorrect(r: StepResult) -> bool:
	return r.status == "incorrect" or (r.status is None and not r.correct)


def count_outcomes(results: Sequence[StepResult]) -> Tuple[int, int]:
	"""Return ``(correct, partially_correct)`` counts.

	Results stored before three-tier grading have no ``status``; those count
	as correct when their ``correct`` flag is set.
	"""
	correct = sum(1 for r in results if _is_correct(r))
	partial = sum(1 for r in results if r.status == "partially_correct")
	return correct, partial


def compute_score(correct: int, partial: int, total: int) -> int:
	if total <= 0:
		return 0
	# round half up
	return int(math.floor((correct + partial * 0.5) / total * 100 + 0.5))


def _verdict(score: int) -> str:
	if score >= 80:
		return "Excellent performance! You demonstrated strong competency in this area."
	if score >= 60:
		return "Good performance with some areas to work on. Keep practicing!"
	return "You should review the fundamentals of this topic and try again."


def _bullets(title: str, items: List[str]) -> str:
	if not items:
		return ""
	return title + ":\n" + "\n".join(f"- {s}" for s in items)


def build_summary(results: Sequence[StepResult]) -> str:
	total = len(results)
	correct, partial = count_outcomes(results)
	score = compute_score(correct, partial, total)
	lines = [
		f"Assessment Summary: {score}% ({correct} correct, {partial} partial, {total - correct - partial} incorrect out of {total})",
		"",
		_bullets("Strengths", [r.instruction for r in results if _is_correct(r)]),
		_bullets("Partially Correct", [r.instruction for r in results if r.status == "partially_correct"]),
		_bullets("Areas for Improvement", [r.instruction for r in results if _is_incorrect(r)]),
		"",
		_verdict(score),
	]
	return "\n".join(line for line in lines if line)

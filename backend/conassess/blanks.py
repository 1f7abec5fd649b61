"""Blank-marker normalization for generated scenarios.

The generation model is asked to number ``___BLANK_<n>___`` markers in the
order they appear in the code template, and to keep the steps and the
"At Blank N" lines of the context in that same order. It often does not.
``assemble_scenario`` renumbers the markers by physical position and carries
the new numbering through to the steps and the context text.
"""
from __future__ import annotations
import logging
import re
from typing import Dict, List, Sequence, Tuple

from .errors import MalformedMarkerError
from .schemas import Occurrence, Scenario, Step

logger = logging.getLogger(__name__)


MARKER_RE = re.compile(r"___BLANK_([0-9]+)___")
# "Blank 3", "blank  3", "BLANK 3"; a number is only matched whole
BLANK_REFERENCE_RE = re.compile(r"\b(blank\s+)([0-9]+)(?![0-9])", re.IGNORECASE)

SENTINEL_INSTRUCTION = "Missing step definition."
SENTINEL_EXPECTED_ANSWER = "???"


def marker_for(index: int) -> str:
	return f"___BLANK_{index}___"


def step_id_for(index: int) -> str:
	return f"step_{index}"


def sentinel_step(index: int) -> Step:
	return Step(
		id=step_id_for(index),
		instruction=SENTINEL_INSTRUCTION,
		expected_answer=SENTINEL_EXPECTED_ANSWER,
		output_simulation="",
	)


def is_sentinel(step: Step) -> bool:
	return step.instruction == SENTINEL_INSTRUCTION and step.expected_answer == SENTINEL_EXPECTED_ANSWER


def scan_placeholders(template: str) -> List[Occurrence]:
	occurrences: List[Occurrence] = []
	for match in MARKER_RE.finditer(template):
		try:
			declared = int(match.group(1))
		except ValueError as err:
			raise MalformedMarkerError(match.group(0), match.start()) from err
		occurrences.append(Occurrence(declared_index=declared, offset=match.start(), marker=match.group(0)))
	return occurrences


def resolve_canonical_order(occurrences: Sequence[Occurrence]) -> Tuple[Dict[int, int], List[Occurrence]]:
	"""Number occurrences 1..n by offset.

	Returns the declared -> canonical mapping and the occurrences annotated with
	their canonical index. When two markers declare the same index, both get
	their own canonical index but the mapping keeps the later one.
	"""
	ordered = sorted(occurrences, key=lambda o: o.offset)
	mapping: Dict[int, int] = {}
	annotated: List[Occurrence] = []
	for position, occ in enumerate(ordered, start=1):
		if occ.declared_index in mapping:
			logger.warning(
				"Blank %s declared more than once; references now point at canonical blank %s",
				occ.declared_index,
				position,
			)
		mapping[occ.declared_index] = position
		annotated.append(occ.model_copy(update={"canonical_index": position}))
	return mapping, annotated


def rewrite_template(template: str, occurrences: Sequence[Occurrence]) -> str:
	parts: List[str] = []
	cursor = 0
	for occ in occurrences:
		parts.append(template[cursor:occ.offset])
		parts.append(marker_for(occ.canonical_index))
		cursor = occ.end
	parts.append(template[cursor:])
	return "".join(parts)


def _rewrite_step_references(text: str, declared: int, canonical: int) -> str:
	pattern = re.compile(rf"\b(blank\s+){declared}(?![0-9])", re.IGNORECASE)
	return pattern.sub(lambda m: f"{m.group(1)}{canonical}", text)


def remap_steps(steps: Sequence[Step], occurrences: Sequence[Occurrence]) -> List[Step]:
	"""Reorder steps so ``result[i]`` belongs to canonical blank ``i + 1``.

	The step at position k of the raw list belongs to declared blank k + 1.
	A blank whose declared index has no step gets a sentinel step.
	"""
	remapped: List[Step] = []
	for occ in occurrences:
		source = occ.declared_index - 1
		if 0 <= source < len(steps):
			original = steps[source]
			remapped.append(original.model_copy(update={
				"id": step_id_for(occ.canonical_index),
				"instruction": _rewrite_step_references(
					original.instruction, occ.declared_index, occ.canonical_index
				),
			}))
		else:
			logger.warning(
				"No step for blank %s (%s steps provided); inserting placeholder at position %s",
				occ.declared_index,
				len(steps),
				occ.canonical_index,
			)
			remapped.append(sentinel_step(occ.canonical_index))
	if len(steps) > len(remapped):
		logger.warning("Dropping %s steps with no matching blank", len(steps) - len(remapped))
	return remapped


def rewrite_context_references(context: str, mapping: Dict[int, int]) -> str:
	def _swap(match: re.Match) -> str:
		old = int(match.group(2))
		new = mapping.get(old)
		if new is None:
			logger.debug("Context reference %r has no matching blank; left as is", match.group(0))
			return match.group(0)
		return f"{match.group(1)}{new}"

	# single pass: replaced text is never re-scanned, so swaps like 1<->2 are safe
	return BLANK_REFERENCE_RE.sub(_swap, context)


def assemble_scenario(scenario: Scenario) -> Scenario:
	"""Return ``scenario`` with blanks, steps and context numbered consistently."""
	logger.debug("Assembling scenario %r", scenario.id)
	occurrences = scan_placeholders(scenario.code_template)
	logger.debug("Scanned %s blank markers", len(occurrences))
	mapping, annotated = resolve_canonical_order(occurrences)
	if not annotated:
		return scenario
	if any(o.declared_index != o.canonical_index for o in annotated):
		logger.info(
			"Renumbering blanks %s -> %s",
			[o.declared_index for o in annotated],
			[o.canonical_index for o in annotated],
		)
	template = rewrite_template(scenario.code_template, annotated)
	steps = remap_steps(scenario.steps, annotated)
	context = rewrite_context_references(scenario.context, mapping)
	logger.debug("Assembled scenario %r with %s steps", scenario.id, len(steps))
	return scenario.model_copy(update={
		"code_template": template,
		"steps": steps,
		"context": context,
	})

from __future__ import annotations

import json
import logging
import random
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .blanks import assemble_scenario
from .errors import ScenarioGenerationError
from .llm_client import LLMClient
from .schemas import ChatMessage, Difficulty, Scenario, Step


logger = logging.getLogger(__name__)


INDUSTRIES: List[str] = [
    "an e-commerce platform", "a healthcare system", "a fintech application",
    "a social media platform", "a real-time gaming service", "a logistics system",
    "a video streaming service", "an IoT platform", "a SaaS product",
    "a startup MVP", "a machine learning pipeline", "an education platform",
    "a government portal", "a travel booking system", "a food delivery app",
]

GENERATION_TEMPERATURE = 1.0
GENERATION_MAX_TOKENS = 4000


class ScenarioConfig(BaseModel):
    """What to ask the model for; the scenario body is generated at runtime."""

    id: str
    title: str
    description: str = ""
    topic: str
    difficulty: Difficulty = "Mid"
    blanks: int = Field(default=5, ge=1, le=10)
    environment: str = ""
    tags: List[str] = Field(default_factory=list)


SCENARIO_CONFIGS: List[ScenarioConfig] = [
    ScenarioConfig(
        id="ai-docker-networking",
        title="Docker Networking Challenge",
        description="AI-generated questions on Docker networking, port mapping, and container communication.",
        topic="Docker Networking",
        difficulty="Mid",
        blanks=5,
        environment="Docker",
        tags=["Docker", "AI-Generated", "Networking"],
    ),
]


def find_config(config_id: str) -> Optional[ScenarioConfig]:
    for config in SCENARIO_CONFIGS:
        if config.id == config_id:
            return config
    return None


def build_generation_prompt(config: ScenarioConfig, industry: str, seed: int) -> str:
    n = config.blanks
    return (
        'You are a technical assessment generator for "ConAssess", an AI-powered interview platform that supports ANY technical topic.\n\n'
        "Generate a complete assessment scenario. Respond ONLY with valid JSON (no markdown fences, no extra text).\n\n"
        "CRITICAL JSON RULES:\n"
        "- Use \\n for newlines inside string values, NEVER use actual line breaks inside a JSON string value.\n"
        "- All string values must be properly escaped.\n\n"
        "The JSON must have this EXACT shape:\n"
        '{"context": "markdown string", "codeTemplate": "ONE unified code block with ___BLANK_1___, ___BLANK_2___ etc.", '
        '"steps": [{"id": "step_1", "instruction": "what blank 1 asks", "expectedAnswer": "correct answer for blank 1", '
        '"outputSimulation": "expected output or result"}]}\n\n'
        "codeTemplate RULES:\n"
        "- ONE realistic script or config file (20-50 lines) that contains ALL the blanks.\n"
        f"- EXACTLY {n} numbered markers ___BLANK_1___ ... ___BLANK_{n}___, no more, no fewer, no duplicates.\n"
        "- ___BLANK_N___ corresponds to step N's expectedAnswer.\n"
        "- Blanks MUST appear in STRICTLY ASCENDING PHYSICAL ORDER when reading the template top to bottom.\n"
        "- Each blank replaces ONE expression, value, or short statement; never a whole function, class, or block.\n\n"
        "SHORT ANSWERS ONLY: every expectedAnswer is a single line, ideally under 80 characters.\n\n"
        "Adapt the answer format to the topic: commands for CLI/DevOps, code for programming, queries for databases, "
        "concise technical answers for conceptual topics, commands or config snippets for cloud/infrastructure. "
        "outputSimulation is the realistic output or result for that answer.\n\n"
        "CONTEXT FORMAT:\n"
        "1. A # heading with the scenario title.\n"
        "2. A 2-3 sentence paragraph describing the real-world situation.\n"
        '3. The sub-heading "## Complete the code as per the given instructions:"\n'
        f"4. A numbered list of EXACTLY {n} detailed questions, one per blank, each starting with a bold label "
        '"**At Blank N:**". The text after "At Blank N:" MUST be IDENTICAL to that step\'s "instruction" field.\n'
        "5. A section with relevant details (architecture, tech stack, constraints).\n\n"
        "CONFIG:\n"
        f"- Topic: {config.topic}\n"
        f"- Difficulty: {config.difficulty}\n"
        f"- Number of steps: {n}\n"
        f"- Environment/Domain: {config.environment or config.topic}\n"
        f"- INDUSTRY CONTEXT: The scenario should be set in {industry}\n"
        f"- VARIATION SEED: {seed} (use this to vary your creative choices)\n\n"
        f"Create a UNIQUE scenario related to {config.topic} in the context of {industry}. "
        f"Generate EXACTLY {n} steps. Instructions must not reveal the exact answer."
    )


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\s*\n?", "", cleaned)
        cleaned = re.sub(r"\n?\s*```$", "", cleaned)
    return cleaned.strip()


def parse_scenario_json(raw: str) -> Dict[str, Any]:
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        first = cleaned.find("{")
        last = cleaned.rfind("}")
        if first == -1 or last <= first:
            raise ScenarioGenerationError("Model did not return valid JSON.")
        try:
            data = json.loads(cleaned[first : last + 1])
        except json.JSONDecodeError as err:
            raise ScenarioGenerationError("Model did not return valid JSON.") from err
    if not isinstance(data, dict):
        raise ScenarioGenerationError("Model returned JSON that is not an object.")
    return data


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def build_raw_scenario(config: ScenarioConfig, data: Dict[str, Any]) -> Scenario:
    context = data.get("context")
    steps = data.get("steps")
    if not context or not isinstance(steps, list) or not steps:
        raise ScenarioGenerationError("Invalid scenario structure returned by AI.")
    parsed: List[Step] = []
    for i, s in enumerate(steps):
        if not isinstance(s, dict):
            raise ScenarioGenerationError(f"Step {i + 1} is not an object.")
        parsed.append(Step(
            id=_text(s.get("id")) or f"step_{i + 1}",
            instruction=_text(s.get("instruction")),
            expected_answer=_text(s.get("expectedAnswer")),
            output_simulation=_text(s.get("outputSimulation")),
        ))
    return Scenario(
        id=config.id,
        title=config.title,
        description=config.description,
        difficulty=config.difficulty,
        environment=config.environment,
        context=_text(context),
        code_template=_text(data.get("codeTemplate")),
        steps=parsed,
    )


async def generate_scenario(
    client: LLMClient,
    config: ScenarioConfig,
    *,
    rng: Optional[random.Random] = None,
) -> Scenario:
    rng = rng or random.Random()
    industry = rng.choice(INDUSTRIES)
    seed = rng.randrange(100000)
    logger.info("Generating %s-step %s scenario (%s, seed %s)", config.blanks, config.topic, industry, seed)
    messages = [
        ChatMessage(role="system", content=build_generation_prompt(config, industry, seed)),
        ChatMessage(
            role="user",
            content=f"Generate a {config.blanks}-step {config.topic} assessment at {config.difficulty} level. Return ONLY valid JSON.",
        ),
    ]
    try:
        raw = await client.chat(messages, temperature=GENERATION_TEMPERATURE, max_tokens=GENERATION_MAX_TOKENS)
    except Exception as err:
        raise ScenarioGenerationError("Failed to generate scenario.") from err
    scenario = build_raw_scenario(config, parse_scenario_json(raw))
    if len(scenario.steps) != config.blanks:
        logger.info("Model returned %s steps for a %s-blank request", len(scenario.steps), config.blanks)
    return assemble_scenario(scenario)

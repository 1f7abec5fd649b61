from __future__ import annotations

import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..blanks import assemble_scenario
from ..deps import consume_request, get_llm_client
from ..errors import MalformedMarkerError, ScenarioGenerationError
from ..generation import SCENARIO_CONFIGS, ScenarioConfig, find_config, generate_scenario
from ..llm_client import LLMClient
from ..schemas import Difficulty, Scenario
from .auth import User, get_current_user


router = APIRouter(prefix="/scenarios", tags=["scenarios"])

logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
    # Either a catalogue id or an ad-hoc topic
    config_id: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Difficulty = "Mid"
    blanks: int = Field(default=5, ge=1, le=10)
    environment: Optional[str] = None


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _resolve_config(req: GenerateRequest) -> ScenarioConfig:
    if req.config_id:
        config = find_config(req.config_id)
        if config is None:
            raise HTTPException(status_code=404, detail=f"Unknown scenario config: {req.config_id}")
        return config
    topic = (req.topic or "").strip()
    if not topic:
        raise HTTPException(status_code=400, detail="config_id or topic is required")
    return ScenarioConfig(
        id=f"ai-{_slug(topic)}",
        title=f"{topic} Assessment",
        description=f"AI-generated {req.difficulty} questions on {topic}.",
        topic=topic,
        difficulty=req.difficulty,
        blanks=req.blanks,
        environment=(req.environment or topic).strip(),
        tags=[topic, "AI-Generated"],
    )


@router.get("", response_model=List[ScenarioConfig])
def list_configs():
    return SCENARIO_CONFIGS


@router.post("/generate", response_model=Scenario)
async def generate(
    req: GenerateRequest,
    user: User = Depends(consume_request),
    client: LLMClient = Depends(get_llm_client),
):
    config = _resolve_config(req)
    try:
        return await generate_scenario(client, config)
    except (ScenarioGenerationError, MalformedMarkerError) as err:
        logger.error("Scenario generation failed for %s: %s", config.id, err)
        raise HTTPException(status_code=502, detail=str(err))


@router.post("/normalize", response_model=Scenario)
def normalize(scenario: Scenario, user: User = Depends(get_current_user)):
    try:
        return assemble_scenario(scenario)
    except MalformedMarkerError as err:
        raise HTTPException(status_code=422, detail=str(err))

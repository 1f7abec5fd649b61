from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from .db import init_db
from .settings import settings
from .routers import auth
from .routers import users
from .routers import scenarios
from .routers import answers
from .routers import results

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	init_db()
	logger.info("Database ready; LLM configured: %s", _llm_configured())
	yield


def _llm_configured() -> bool:
	return bool(settings.gemini_api_key or settings.openrouter_api_key)


app = FastAPI(title="ConAssess API", lifespan=lifespan)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(scenarios.router)
app.include_router(answers.router)
app.include_router(results.router)


@app.get("/info")
def root():
	return {"status": "ok", "llm_configured": _llm_configured()}

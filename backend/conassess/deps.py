from __future__ import annotations
import logging
from typing import AsyncIterator

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from .db import get_db
from .errors import LLMConfigurationError
from .llm_client import LLMClient
from .models import AuthUser
from .routers.auth import User, get_current_user

logger = logging.getLogger(__name__)


async def get_llm_client() -> AsyncIterator[LLMClient]:
	try:
		client = LLMClient()
	except LLMConfigurationError as err:
		raise HTTPException(status_code=503, detail=str(err))
	try:
		yield client
	finally:
		await client.aclose()


def consume_request(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
	"""Count one model call against the user's quota (429 once exhausted)."""
	row = db.query(AuthUser).filter(AuthUser.username == user.username).first()
	if row:
		if row.requests_used >= row.requests_limit:
			logger.info("User %s hit request limit %s", user.username, row.requests_limit)
			raise HTTPException(status_code=429, detail="request limit reached")
		row.requests_used += 1
		db.add(row)
		db.commit()
	return user

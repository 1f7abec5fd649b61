from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional, Sequence
from .errors import LLMConfigurationError
from .schemas import ChatMessage
from .settings import settings

logger = logging.getLogger(__name__)

# Gemini has no "assistant" role; prior model turns are sent as "model"
_GEMINI_ROLES = {"user": "user", "assistant": "model"}


class LLMClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		self._openrouter_api_key = settings.openrouter_api_key
		if not self.api_key and not self._openrouter_api_key:
			raise LLMConfigurationError("Neither GEMINI_API_KEY nor OPENROUTER_API_KEY is configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		timeout = settings.llm_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(self._openrouter_api_key)
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=timeout, transport=transport)

	async def generate(
		self,
		prompt: str,
		*,
		temperature: Optional[float] = None,
		max_tokens: Optional[int] = None,
	) -> str:
		return await self.chat(
			[ChatMessage(role="user", content=prompt)],
			temperature=temperature,
			max_tokens=max_tokens,
		)

	async def chat(
		self,
		messages: Sequence[ChatMessage],
		*,
		temperature: Optional[float] = None,
		max_tokens: Optional[int] = None,
	) -> str:
		last_error: Optional[Exception] = None
		if self.api_key:
			try:
				return await self._gemini_chat(messages, temperature=temperature, max_tokens=max_tokens)
			except (httpx.HTTPError, RuntimeError) as err:
				logger.warning("Gemini call failed: %s", err)
				last_error = err
		if not self._fallback_enabled:
			raise last_error or RuntimeError("LLM call failed and no fallback configured")
		return await self._fallback_chat(messages, last_error, temperature=temperature, max_tokens=max_tokens)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	def _gemini_payload(
		self,
		messages: Sequence[ChatMessage],
		*,
		temperature: Optional[float],
		max_tokens: Optional[int],
	) -> Dict[str, Any]:
		system_text = "\n\n".join(m.content for m in messages if m.role == "system")
		contents: List[Dict[str, Any]] = [
			{"role": _GEMINI_ROLES[m.role], "parts": [{"text": m.content}]}
			for m in messages
			if m.role != "system"
		]
		payload: Dict[str, Any] = {"contents": contents}
		if system_text:
			payload["systemInstruction"] = {"parts": [{"text": system_text}]}
		generation_config: Dict[str, Any] = {}
		if temperature is not None:
			generation_config["temperature"] = temperature
		if max_tokens is not None:
			generation_config["maxOutputTokens"] = max_tokens
		if generation_config:
			payload["generationConfig"] = generation_config
		return payload

	async def _gemini_chat(
		self,
		messages: Sequence[ChatMessage],
		*,
		temperature: Optional[float],
		max_tokens: Optional[int],
	) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		payload = self._gemini_payload(messages, temperature=temperature, max_tokens=max_tokens)
		r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			raise RuntimeError(f"Unexpected Gemini response: {r.text}") from err

	async def _fallback_chat(
		self,
		messages: Sequence[ChatMessage],
		primary_error: Optional[Exception],
		*,
		temperature: Optional[float],
		max_tokens: Optional[int],
	) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise primary_error or RuntimeError("Fallback requested but OpenRouter is not configured")
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": [m.model_dump() for m in messages],
		}
		if temperature is not None:
			payload["temperature"] = temperature
		if max_tokens is not None:
			payload["max_tokens"] = max_tokens
		try:
			r = await self._fallback_client.post(
				self._openrouter_base_url,
				headers=headers,
				json=payload,
			)
			r.raise_for_status()
			data = r.json()
			if data.get("error"):
				raise RuntimeError(f"OpenRouter error: {data['error']}")
			return data["choices"][0]["message"]["content"]
		except Exception as fallback_err:
			if primary_error is not None:
				raise RuntimeError(
					f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
				) from fallback_err
			raise

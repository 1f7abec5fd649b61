from __future__ import annotations


class MalformedMarkerError(ValueError):
	"""A blank marker matched but its index could not be read."""

	def __init__(self, marker: str, offset: int) -> None:
		super().__init__(f"Malformed blank marker {marker!r} at offset {offset}")
		self.marker = marker
		self.offset = offset


class ScenarioGenerationError(RuntimeError):
	"""The generation model returned nothing usable as a scenario."""


class LLMConfigurationError(ValueError):
	"""Neither Gemini nor OpenRouter credentials are configured."""

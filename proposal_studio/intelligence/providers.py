"""
LLM providers behind one interface.

Text generation goes through the crewai LLM wrapper so the same model
configuration drives both direct calls and section-writing agents.
Embeddings are plain REST calls made with httpx.
"""

import asyncio
import json
import logging
from typing import Optional, List, Dict, Any, Type

import httpx
from crewai import LLM

from proposal_studio.core.config import get_settings
from proposal_studio.rendering.diagrams import sanitize_diagram

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = "\n\nRespond with valid JSON only."

DIAGRAM_PROMPT = """Generate a Mermaid diagram for: {description}

Return ONLY the Mermaid code starting with the diagram type.
No markdown code blocks, no explanations, just the raw Mermaid code.

Use current Mermaid syntax and keep it professional and clear."""

DIAGRAM_SYSTEM_PROMPT = """You are an expert technical architect specializing in diagram generation.
Generate clean, professional Mermaid diagrams."""


class ProviderError(Exception):
    """Raised when a provider call fails or returns unusable output."""


def clean_json_response(response: str) -> str:
    """Strip markdown code fences around a JSON answer."""
    cleaned = (response or "").strip()
    if "```json" in cleaned:
        cleaned = cleaned.split("```json", 1)[1].split("```", 1)[0]
    elif "```" in cleaned:
        cleaned = cleaned.split("```", 1)[1].split("```", 1)[0]
    return cleaned.strip()


class AIProvider:
    """
    Base provider.

    Subclasses set the crewai model prefix and the settings that hold
    their key and model names.
    """

    name = "base"
    model_prefix = ""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self._model = model
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def api_key(self) -> str:
        return self._api_key or ""

    @property
    def model(self) -> str:
        return self._model or ""

    @property
    def base_url(self) -> Optional[str]:
        return None

    def build_llm(self, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> LLM:
        """crewai LLM configured for this provider."""
        kwargs: Dict[str, Any] = {
            "model": f"{self.model_prefix}/{self.model}",
            "api_key": self.api_key,
            "temperature": self.settings.AI_TEMPERATURE if temperature is None else temperature,
            "max_tokens": max_tokens or self.settings.AI_MAX_TOKENS,
        }
        if self.base_url:
            kwargs["base_url"] = self.base_url
        return LLM(**kwargs)

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Single completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system instructions
            temperature: Overrides AI_TEMPERATURE
            max_tokens: Overrides AI_MAX_TOKENS

        Returns:
            Completion text

        Raises:
            ProviderError: If the call fails
        """
        llm = self.build_llm(temperature, max_tokens)
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await asyncio.to_thread(llm.call, messages)
        except Exception as e:
            logger.error(f"{self.name} generation failed: {e}")
            raise ProviderError(f"{self.name} generation failed: {e}") from e

        return str(response or "").strip()

    async def generate_json(self, prompt: str, system_prompt: str = "", max_tokens: int = 8000) -> Any:
        """Completion parsed as JSON; code fences are tolerated."""
        response = await self.generate_text(prompt + JSON_INSTRUCTION, system_prompt, max_tokens=max_tokens)
        try:
            return json.loads(clean_json_response(response))
        except json.JSONDecodeError as e:
            logger.error(f"{self.name} returned invalid JSON: {e}")
            raise ProviderError(f"Invalid JSON from {self.name}: {e}") from e

    async def generate_embedding(self, text: str) -> List[float]:
        raise ProviderError(f"{self.name} does not support embeddings")

    async def generate_diagram(self, description: str) -> str:
        """Mermaid source for a description, already sanitized."""
        raw = await self.generate_text(
            DIAGRAM_PROMPT.format(description=description),
            DIAGRAM_SYSTEM_PROMPT,
            temperature=0.3,
        )
        return sanitize_diagram(raw)

    async def _post_json(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(url, json=payload, headers=headers or {})
        except httpx.TimeoutException as e:
            logger.error(f"{self.name} API timeout")
            raise ProviderError(f"{self.name} request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.name} API error: {e}")
            raise ProviderError(f"{self.name} request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"{self.name} API error: {response.status_code} - {response.text[:200]}")
            raise ProviderError(f"{self.name} API error: {response.status_code}")
        return response.json()


class OpenAIProvider(AIProvider):
    name = "openai"
    model_prefix = "openai"

    @property
    def api_key(self) -> str:
        return self._api_key or self.settings.OPENAI_API_KEY

    @property
    def model(self) -> str:
        return self._model or self.settings.OPENAI_MODEL

    async def generate_embedding(self, text: str) -> List[float]:
        data = await self._post_json(
            f"{self.settings.OPENAI_BASE_URL.rstrip('/')}/embeddings",
            {"model": self.settings.OPENAI_EMBEDDING_MODEL, "input": text},
            {"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            return data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Unexpected embedding response from openai") from e


class GeminiProvider(AIProvider):
    name = "gemini"
    model_prefix = "gemini"

    @property
    def api_key(self) -> str:
        return self._api_key or self.settings.GOOGLE_API_KEY

    @property
    def model(self) -> str:
        return self._model or self.settings.GEMINI_MODEL

    async def generate_embedding(self, text: str) -> List[float]:
        model = self.settings.GEMINI_EMBEDDING_MODEL
        data = await self._post_json(
            f"{self.settings.GEMINI_BASE_URL.rstrip('/')}/models/{model}:embedContent",
            {"model": f"models/{model}", "content": {"parts": [{"text": text}]}},
            {"x-goog-api-key": self.api_key},
        )
        try:
            return data["embedding"]["values"]
        except (KeyError, TypeError) as e:
            raise ProviderError("Unexpected embedding response from gemini") from e


class GrokProvider(AIProvider):
    """xAI Grok; text only, embeddings are not offered."""

    name = "grok"
    model_prefix = "xai"

    @property
    def api_key(self) -> str:
        return self._api_key or self.settings.XAI_API_KEY

    @property
    def model(self) -> str:
        return self._model or self.settings.GROK_MODEL

    @property
    def base_url(self) -> Optional[str]:
        return self.settings.XAI_BASE_URL

    async def generate_embedding(self, text: str) -> List[float]:
        raise ProviderError("Grok does not support embeddings. Use Gemini or OpenAI instead.")


PROVIDERS: Dict[str, Type[AIProvider]] = {
    OpenAIProvider.name: OpenAIProvider,
    GeminiProvider.name: GeminiProvider,
    GrokProvider.name: GrokProvider,
}


def create_ai_provider(name: Optional[str] = None) -> AIProvider:
    """
    Provider by name, defaulting to the AI_PROVIDER setting.

    Raises:
        ValueError: For an unknown provider name
    """
    selected = (name or get_settings().AI_PROVIDER or "").strip().lower()
    provider_class = PROVIDERS.get(selected)
    if provider_class is None:
        raise ValueError(f"Unknown AI provider: {selected}. Choose one of: {', '.join(PROVIDERS)}")
    return provider_class()

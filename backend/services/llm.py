"""
services/llm.py — Async, schema-constrained LLM calls.

Provider chain: OpenRouter → OpenAI → Gemini (auto-detected from env vars).
OpenRouter and OpenAI go through openai.AsyncOpenAI with a strict json_schema
response format; Gemini goes through google.generativeai in a thread pool
with a JSON response mime type.
"""

import asyncio
import json
from typing import Optional

from config import Config
from exceptions import AIServiceError
from logging_config import get_logger

logger = get_logger(__name__)


def _detect_provider() -> str:
    p = Config.AI_PROVIDER
    if p in ("openrouter", "gemini", "openai"):
        return p
    if Config.OPENROUTER_API_KEY:
        return "openrouter"
    if Config.OPENAI_API_KEY:
        return "openai"
    if Config.GEMINI_API_KEY:
        return "gemini"
    return "openai"


class LLMService:
    """Async LLM calls.  Instantiate once as a module-level singleton."""

    def __init__(self, provider: Optional[str] = None, model: Optional[str] = None):
        self._provider = provider or _detect_provider()
        self._model = model
        self._async_client = None   # openai.AsyncOpenAI — lazy init
        self._genai = None
        logger.info("LLMService: provider=%s model=%s", self._provider, self.model)

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        if self._model:
            return self._model
        if self._provider == "openrouter":
            return Config.OPENROUTER_MODEL
        if self._provider == "gemini":
            return Config.GEMINI_MODEL
        return Config.OPENAI_MODEL

    # ── Structured completion ────────────────────────────────────────────────

    async def generate_json(self, prompt: str, schema_name: str, schema: dict, max_tokens: int = 4096):
        """Single-turn completion constrained to *schema*.

        Returns the raw model output: usually a JSON string, occasionally an
        already-decoded object. Callers own parsing and shape validation.
        Raises AIServiceError when the provider call fails.
        """
        if self._provider == "gemini":
            return await self._generate_gemini(prompt, schema, max_tokens)

        client = self._get_async_client()
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": schema_name, "strict": True, "schema": schema},
                },
            )
        except Exception as e:
            logger.error("llm.request.failed", provider=self._provider, model=self.model, error=str(e))
            raise AIServiceError(f"AI model request failed: {e}") from e

        content = resp.choices[0].message.content if resp.choices else None
        logger.info(
            "llm.response provider=%s model=%s schema=%s chars=%d",
            self._provider, self.model, schema_name, len(content or ""),
        )
        return content

    # ── OpenAI/OpenRouter client helper ──────────────────────────────────────

    def _get_async_client(self):
        if self._async_client is None:
            import openai

            if self._provider == "openrouter":
                api_key = Config.OPENROUTER_API_KEY
                if not api_key:
                    raise AIServiceError("OPENROUTER_API_KEY is required")
                self._async_client = openai.AsyncOpenAI(
                    base_url=Config.OPENROUTER_BASE_URL,
                    api_key=api_key,
                    timeout=Config.LLM_TIMEOUT_SECONDS,
                    max_retries=0,
                )
            else:
                api_key = Config.OPENAI_API_KEY
                if not api_key:
                    raise AIServiceError("OPENAI_API_KEY is required")
                self._async_client = openai.AsyncOpenAI(
                    api_key=api_key,
                    timeout=Config.LLM_TIMEOUT_SECONDS,
                    max_retries=0,
                )
        return self._async_client

    # ── Gemini helpers ────────────────────────────────────────────────────────

    def _get_genai(self):
        if self._genai is None:
            import google.generativeai as genai
            if not Config.GEMINI_API_KEY:
                raise AIServiceError("GOOGLE_API_KEY is required for Gemini")
            genai.configure(api_key=Config.GEMINI_API_KEY)
            self._genai = genai
        return self._genai

    async def _generate_gemini(self, prompt: str, schema: dict, max_tokens: int):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._generate_gemini_sync, prompt, schema, max_tokens)
        except AIServiceError:
            raise
        except Exception as e:
            logger.error("llm.request.failed", provider="gemini", model=self.model, error=str(e))
            raise AIServiceError(f"AI model request failed: {e}") from e

    def _generate_gemini_sync(self, prompt: str, schema: dict, max_tokens: int) -> str:
        genai = self._get_genai()
        gmodel = genai.GenerativeModel(model_name=self.model)
        # Gemini's response_schema dialect rejects some JSON Schema keywords; spell it out instead.
        full_prompt = (
            f"{prompt}\n\nRespond with JSON only, matching this JSON schema:\n"
            f"{json.dumps(schema)}"
        )
        resp = gmodel.generate_content(
            full_prompt,
            generation_config={
                "response_mime_type": "application/json",
                "max_output_tokens": max_tokens,
            },
            request_options={"timeout": Config.LLM_TIMEOUT_SECONDS},
        )
        return resp.text

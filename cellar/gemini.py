"""Thin async wrapper around the Google Gen AI SDK plus JSON answer decoding."""

from typing import Protocol, TypeVar

import httpx
import structlog
from google import genai
from google.genai import errors, types
from pydantic import BaseModel, Field

from cellar import config

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class GenerationError(Exception):
    """The generative model call failed."""


class QuotaExceededError(GenerationError):
    """The generative API rejected the call for quota / rate-limit reasons."""


class InlineImage(BaseModel):
    """Image bytes sent alongside a prompt."""

    data: bytes = Field(..., min_length=1)
    mime_type: str = "image/jpeg"


class TextGenerator(Protocol):
    async def generate(self, prompt: str, image: InlineImage | None = None) -> str: ...


def _is_quota_error(e: errors.APIError) -> bool:
    return e.code == 429 or (getattr(e, "status", None) or "").upper() == "RESOURCE_EXHAUSTED"


class GeminiClient:
    """
    Raw text generation against a Gemini model.

    One instance is built by the process bootstrap and passed to every
    component that needs the model.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: genai.Client | None = None,
    ):
        self.model = model or config.GEMINI_MODEL
        self._client = client or genai.Client(api_key=api_key or config.GOOGLE_AI_API_KEY)

    async def generate(self, prompt: str, image: InlineImage | None = None) -> str:
        """
        Send ``prompt`` (and optionally an inline image) and return the text.

        Raises:
            QuotaExceededError: the API answered 429 / RESOURCE_EXHAUSTED.
            GenerationError: any other API or transport failure.
        """
        contents: list = [prompt]
        if image is not None:
            contents.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
            )
        except errors.APIError as e:
            if _is_quota_error(e):
                logger.warning("Gemini quota exceeded", model=self.model, code=e.code)
                raise QuotaExceededError(
                    "API quota exceeded. Please try again later or check your Google AI billing."
                ) from e
            logger.warning("Gemini API error", model=self.model, code=e.code, error=str(e))
            raise GenerationError(f"Gemini API error: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("Gemini transport error", model=self.model, error=str(e))
            raise GenerationError(f"Gemini transport error: {e}") from e

        return (response.text or "").strip()


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) Markdown fence."""
    cleaned = (text or "").strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_model_json(text: str, schema: type[M]) -> M:
    """
    Decode a model answer into ``schema``.

    Raises pydantic.ValidationError on malformed JSON or a schema mismatch.
    """
    return schema.model_validate_json(strip_code_fences(text))

"""
Chat-completion client used for entry analysis and weekly letters.

Any OpenAI-compatible endpoint works; OpenRouter is the default. Calls are
made once, without retries, and every failure (transport, HTTP status,
missing key, unparseable or incomplete reply) is raised as AnalysisFailed so
callers never persist half a result.
"""
import os
import json
import logging
from collections import Counter
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from dotenv import load_dotenv
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from src.api.errors import AnalysisFailed, InvalidInput
from src.api.schemas import AnalysisResult
from src.db.models import MOODS, JournalEntry

load_dotenv()

logger = logging.getLogger(__name__)

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://openrouter.ai/api/v1")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "openai/gpt-4o")
OPENAI_TIMEOUT_SECONDS = float(os.environ.get("OPENAI_TIMEOUT_SECONDS", 30))

_ANALYSIS_BRIEF = (
    "Read the journal entry and answer in JSON with: "
    "mood (one of " + ", ".join(MOODS) + "), "
    "reflection (two or three sentences), "
    "suggestions (exactly three short self-care ideas), "
    "colorHint (a soft colour that suits the mood, e.g. \"gentle lavender\")."
)

STANDARD_PROMPT = "You are a supportive mental wellness companion. " + _ANALYSIS_BRIEF
KIND_FRIEND_PROMPT = (
    "You are a warm, wise friend looking at someone's journal entry from the outside. "
    "Write the reflection about them in the third person, using they/them. " + _ANALYSIS_BRIEF
)

LETTER_PROMPT = (
    "Write a letter to the user from their future self about the week they just journaled. "
    "Be warm and honest, notice how their feelings moved, point out resilience, "
    "keep it to three or four paragraphs and sign it \"Your Future Self\"."
)

ANALYSIS_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "journal_analysis",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "mood": {"type": "string", "enum": list(MOODS)},
                "reflection": {"type": "string"},
                "suggestions": {"type": "array", "items": {"type": "string"}, "minItems": 3, "maxItems": 3},
                "colorHint": {"type": "string"},
            },
            "required": ["mood", "reflection", "suggestions", "colorHint"],
            "additionalProperties": False,
        },
    },
}


class AnalysisClient:
    """Thin wrapper over the OpenAI SDK for the two operations the API needs."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 model: Optional[str] = None, timeout: Optional[float] = None):
        api_key = api_key or OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        self._client = None
        if api_key:
            self._client = OpenAI(
                api_key=api_key,
                base_url=base_url or OPENAI_BASE_URL,
                timeout=timeout or OPENAI_TIMEOUT_SECONDS,
                max_retries=0,
            )
        else:
            logger.warning("OPENAI_API_KEY is not set; analysis requests will fail")

    def _complete(self, messages: List[Dict[str, str]], **kwargs) -> str:
        if self._client is None:
            raise AnalysisFailed("Analysis service is not configured")
        try:
            response = self._client.chat.completions.create(model=self.model, messages=messages, **kwargs)
        except OpenAIError as exc:
            logger.warning("Chat completion failed: %s", exc.__class__.__name__)
            raise AnalysisFailed()

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None
        if not content or not content.strip():
            logger.warning("Chat completion returned no content")
            raise AnalysisFailed()
        return content.strip()

    def analyze(self, content: str, kind_friend: bool = False) -> AnalysisResult:
        """Mood, reflection, three suggestions and a colour hint for one entry."""
        if not content or not content.strip():
            raise InvalidInput("Content is required")

        raw = self._complete(
            [
                {"role": "system", "content": KIND_FRIEND_PROMPT if kind_friend else STANDARD_PROMPT},
                {"role": "user", "content": content},
            ],
            response_format=ANALYSIS_FORMAT,
            temperature=0.7,
            max_tokens=500,
        )
        try:
            return AnalysisResult.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Discarding malformed analysis payload")
            raise AnalysisFailed()

    def write_weekly_letter(self, entries: Sequence[JournalEntry]) -> str:
        """Letter text for a non-empty week of entries, oldest first."""
        moods = Counter(entry.mood for entry in entries)
        days = "\n".join(
            f"Day {index}: {entry.mood} - {entry.reflection or 'No reflection'}"
            for index, entry in enumerate(entries, start=1)
        )
        summary = (
            f"This week I journaled {len(entries)} times.\n\n"
            f"Mood distribution: {json.dumps(dict(moods))}\n\n"
            f"{days}\n\n"
            "Write a letter from my future self reflecting on this week."
        )
        return self._complete(
            [
                {"role": "system", "content": LETTER_PROMPT},
                {"role": "user", "content": summary},
            ],
            temperature=0.8,
            max_tokens=800,
        )


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_analysis_client() -> AnalysisClient:
    """FastAPI dependency; tests override it with a scripted fake."""
    return AnalysisClient()

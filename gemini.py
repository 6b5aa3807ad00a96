"""
Gemini-backed farming advisor.

Every call here is allowed to fail: the advisor logs the problem and hands
back a neutral answer (no recommendations, the untranslated text, an
UNKNOWN command) so nothing upstream ever waits on or crashes because of
the model.
"""
import asyncio
import logging
import os
from typing import List, Optional

from google import genai
from google.genai import types
from pydantic import TypeAdapter

from schemas import Language, Recommendation, VoiceCommandResult

logger = logging.getLogger(__name__)

PRO_MODEL = os.getenv("GEMINI_PRO_MODEL", "gemini-3-pro-preview")
FLASH_MODEL = os.getenv("GEMINI_FLASH_MODEL", "gemini-3-flash-preview")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))

VOICE_ACTIONS = ["NAVIGATE_MARKET", "NAVIGATE_INVENTORY", "NAVIGATE_LOANS", "ADD_CROP", "UNKNOWN"]
ACTION_LIST = ", ".join('"' + a + '"' for a in VOICE_ACTIONS)
NOT_UNDERSTOOD = VoiceCommandResult(action="UNKNOWN", feedback="I didn't quite catch that.")
EMPTY_REPLY = VoiceCommandResult(action="UNKNOWN", feedback="Sorry, I encountered an error.")

_recommendations_adapter = TypeAdapter(List[Recommendation])

RECOMMENDATIONS_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "description": types.Schema(type=types.Type.STRING),
            "type": types.Schema(type=types.Type.STRING, enum=["LOAN", "SCHEME", "LAW"]),
            "link": types.Schema(type=types.Type.STRING),
        },
        required=["title", "description", "type", "link"],
    ),
)

VOICE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "action": types.Schema(type=types.Type.STRING),
        "feedback": types.Schema(type=types.Type.STRING),
    },
    required=["action", "feedback"],
)


class AdvisorService:
    def __init__(self, client=None, timeout: float = AI_TIMEOUT_SECONDS):
        self._client = client
        self.timeout = timeout

    @property
    def client(self):
        # Built on first use so a missing key only fails the call, not startup
        if self._client is None:
            self._client = genai.Client(api_key=os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY"))
        return self._client

    async def _generate(self, model: str, contents: str, config: Optional[types.GenerateContentConfig] = None) -> str:
        response = await asyncio.wait_for(
            self.client.aio.models.generate_content(model=model, contents=contents, config=config),
            timeout=self.timeout,
        )
        return (response.text or "").strip()

    async def get_recommendations(self, language: Language, context: str = "general crop management") -> List[Recommendation]:
        """Three loans, govt schemes or farming laws relevant to an Indian farmer."""
        try:
            text = await self._generate(
                PRO_MODEL,
                f"Suggest 3 agriculture-related loans, govt schemes, or farming laws for a farmer in India. "
                f"Use the language code: {language}. Context: {context}",
                types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=RECOMMENDATIONS_SCHEMA,
                ),
            )
            return _recommendations_adapter.validate_json(text or "[]")
        except Exception:
            logger.exception("Recommendations request failed")
            return []

    async def translate_text(self, text: str, target_language: Language) -> str:
        try:
            translated = await self._generate(
                FLASH_MODEL,
                f'Translate the following text to {target_language}: "{text}". Return only the translated text.',
            )
            return translated or text
        except Exception:
            logger.exception("Translation request failed")
            return text

    async def process_voice_command(self, command: str, language: Language) -> VoiceCommandResult:
        """Map a spoken sentence to one of VOICE_ACTIONS plus spoken feedback."""
        try:
            text = await self._generate(
                FLASH_MODEL,
                f'The user said: "{command}" in {language}. Interpret this as a command for a farming app.\n'
                f"Possible actions: {ACTION_LIST}.\n"
                f"Return a JSON object with 'action' and a friendly 'feedback' message in {language}.",
                types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=VOICE_SCHEMA,
                ),
            )
            if not text:
                return EMPTY_REPLY
            result = VoiceCommandResult.model_validate_json(text)
            if result.action not in VOICE_ACTIONS:
                return result.model_copy(update={"action": "UNKNOWN"})
            return result
        except Exception:
            logger.exception("Voice command request failed")
            return NOT_UNDERSTOOD

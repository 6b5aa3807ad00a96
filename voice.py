import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from gemini import AdvisorService
from schemas import Language, VoiceCommandResult

logger = logging.getLogger(__name__)

LOCALES = {"hi": "hi-IN", "pa": "pa-IN"}


def locale_tag(language: Language) -> str:
    return LOCALES.get(language, "en-US")


class VoiceUnavailable(Exception):
    pass


class Speaker(ABC):
    """Speech synthesis; speak() must not block or raise."""

    @abstractmethod
    def speak(self, text: str, locale: str) -> None:
        ...


class LogSpeaker(Speaker):
    def speak(self, text: str, locale: str) -> None:
        logger.info("[%s] %s", locale, text)


class Recognizer(ABC):
    """Single-shot speech recognition: result, error and end are reported back to the assistant."""

    @abstractmethod
    def start(self, locale: str, assistant: "VoiceAssistant") -> None:
        ...


class VoiceAssistant:
    def __init__(self, advisor: AdvisorService, language: Callable[[], Language], speaker: Optional[Speaker] = None):
        self.advisor = advisor
        self.language = language
        self.speaker = speaker or LogSpeaker()
        self.is_listening = False
        self.transcript = ""
        self.feedback = ""
        self.last_action: Optional[str] = None

    def listen(self, recognizer: Optional[Recognizer]) -> None:
        if recognizer is None:
            raise VoiceUnavailable("Voice recognition not supported on this device.")
        recognizer.start(locale_tag(self.language()), self)

    def on_start(self) -> None:
        self.is_listening = True
        self.transcript = ""

    async def on_result(self, text: str) -> VoiceCommandResult:
        language = self.language()
        self.transcript = text
        result = await self.advisor.process_voice_command(text, language)
        self.feedback = result.feedback
        self.last_action = result.action
        try:
            self.speaker.speak(result.feedback, locale_tag(language))
        except Exception:
            logger.exception("Speech synthesis failed")
        return result

    def on_error(self, error: Optional[str] = None) -> None:
        if error:
            logger.warning("Speech recognition error: %s", error)
        self.is_listening = False

    def on_end(self) -> None:
        self.is_listening = False

    def dismiss(self) -> None:
        self.feedback = ""

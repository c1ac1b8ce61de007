"""Text-to-speech for IVR announcements."""
from typing import Optional
from openai import AsyncOpenAI
from app.core.config import settings

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}


def _escape_xml(text: str) -> str:
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in text)


class SpeechSynthesisError(Exception):
    """Raised when an announcement cannot be synthesized."""


class TextToSpeechService:
    """Turns announcement text into MP3 audio with OpenAI TTS."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        voice: Optional[str] = None,
    ):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.tts_model
        self.voice = voice or settings.tts_voice

    async def synthesize_speech(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
    ) -> bytes:
        """
        Synthesize an announcement.

        The model detects the language from the text, so Spanish prompts
        use the same voice as English ones.

        Args:
            text: Announcement text
            voice: Overrides the configured TTS_VOICE
            model: Overrides the configured TTS_MODEL

        Returns:
            MP3 audio bytes

        Raises:
            SpeechSynthesisError: If the OpenAI request fails
        """
        try:
            response = await self.client.audio.speech.create(
                model=model or self.model,
                voice=voice or self.voice,
                input=text,
            )
        except Exception as e:
            raise SpeechSynthesisError(f"TTS synthesis failed: {str(e)}") from e
        return response.content

    @staticmethod
    def generate_twiml_response(text: str, language: str = "en-US") -> str:
        """Build TwiML that speaks `text` in `language` and hangs up."""
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            "<Response>\n"
            f'    <Say voice="Polly.Joanna-Neural" language="{language}">{_escape_xml(text)}</Say>\n'
            "    <Hangup/>\n"
            "</Response>"
        )

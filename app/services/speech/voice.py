"""Voice/audio adapters used by the call session."""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from app.services.speech.tts import SpeechSynthesisError, TextToSpeechService

logger = logging.getLogger(__name__)


class AudioPlaybackError(Exception):
    """Raised when an audio stream cannot be started."""


class Utterance(BaseModel):
    """A piece of text handed to the speech engine."""

    text: str
    locale: str
    spoken_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VoiceAdapter(ABC):
    """Abstract speech and audio output."""

    @abstractmethod
    def speak(self, text: str, locale: str) -> None:
        """Speak text. Fire-and-forget."""
        pass

    @abstractmethod
    def play_audio(self, track_id: str, on_ended: Callable[[], None]) -> None:
        """Start the single audio stream; `on_ended` runs once on natural completion.

        Raises:
            AudioPlaybackError: If playback cannot start
        """
        pass

    @abstractmethod
    def stop_all(self) -> None:
        """Stop speech and audio. Safe to call when nothing is playing."""
        pass


class SimulatedVoiceAdapter(VoiceAdapter):
    """Voice adapter that records speech and simulates track playback.

    A track "plays" for `track_seconds` on the running event loop and then
    reports completion. Only one stream exists at a time.
    """

    def __init__(self, tracks: Dict[str, str], track_seconds: float = 30.0):
        self.tracks = tracks
        self.track_seconds = track_seconds
        self.utterances: List[Utterance] = []
        self.speaking: Optional[Utterance] = None
        self.now_playing: Optional[str] = None
        self._playback: Optional[asyncio.TimerHandle] = None

    def speak(self, text: str, locale: str) -> None:
        utterance = Utterance(text=text, locale=locale)
        self.utterances.append(utterance)
        self.speaking = utterance
        logger.info(f"[VOICE] Speaking ({locale}): {text}")

    def play_audio(self, track_id: str, on_ended: Callable[[], None]) -> None:
        url = self.tracks.get(track_id)
        if url is None:
            raise AudioPlaybackError(f"Unknown audio track '{track_id}'")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise AudioPlaybackError("No running event loop for playback") from e

        self._stop_playback()
        self.now_playing = url
        self._playback = loop.call_later(self.track_seconds, self._finish, on_ended)
        logger.info(f"[VOICE] Playing track '{track_id}': {url}")

    def _finish(self, on_ended: Callable[[], None]) -> None:
        self._playback = None
        self.now_playing = None
        on_ended()

    def _stop_playback(self) -> None:
        if self._playback is not None:
            self._playback.cancel()
            self._playback = None
        self.now_playing = None

    def stop_all(self) -> None:
        self.speaking = None
        self._stop_playback()


class SynthesizedVoiceAdapter(SimulatedVoiceAdapter):
    """Simulated playback plus real speech synthesis through OpenAI TTS.

    The most recent synthesized announcement is kept in `last_clip` so the
    UI can fetch and play it.
    """

    def __init__(
        self,
        tts_service: TextToSpeechService,
        tracks: Dict[str, str],
        track_seconds: float = 30.0,
    ):
        super().__init__(tracks, track_seconds)
        self.tts_service = tts_service
        self.last_clip: Optional[bytes] = None
        self.last_clip_text: Optional[str] = None
        self._synthesis: Optional[asyncio.Task] = None

    def speak(self, text: str, locale: str) -> None:
        super().speak(text, locale)
        self._cancel_synthesis()
        try:
            self._synthesis = asyncio.get_running_loop().create_task(self._synthesize(text))
        except RuntimeError:
            logger.warning("[VOICE] No running event loop, skipping speech synthesis")

    async def _synthesize(self, text: str) -> None:
        try:
            clip = await self.tts_service.synthesize_speech(text)
        except asyncio.CancelledError:
            raise
        except SpeechSynthesisError as e:
            logger.warning(f"[VOICE] Speech synthesis failed: {e}")
            return
        self.last_clip = clip
        self.last_clip_text = text

    def _cancel_synthesis(self) -> None:
        if self._synthesis is not None and not self._synthesis.done():
            self._synthesis.cancel()
        self._synthesis = None

    def stop_all(self) -> None:
        super().stop_all()
        self._cancel_synthesis()

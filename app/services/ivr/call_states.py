"""Call state enumeration."""
from enum import Enum


class CallState(str, Enum):
    """States a simulated call moves through."""

    IDLE = "idle"
    DIALING = "dialing"
    RINGING = "ringing"
    CONNECTED = "connected"
    MENU_LANGUAGE = "menu_language"  # Language selection (level 1)
    MENU_ENGLISH = "menu_english"  # English menu (level 2)
    MENU_SPANISH = "menu_spanish"  # Spanish menu (level 2)
    PLAYING_AUDIO_ENGLISH = "playing_audio_english"
    PLAYING_AUDIO_SPANISH = "playing_audio_spanish"
    FORWARDING = "forwarding"
    ENDED = "ended"

    def __str__(self) -> str:
        """Return the string value of the state."""
        return self.value


# States in which an announcement is active and current_prompt is set
ANNOUNCEMENT_STATES = frozenset(
    {
        CallState.MENU_LANGUAGE,
        CallState.MENU_ENGLISH,
        CallState.MENU_SPANISH,
        CallState.PLAYING_AUDIO_ENGLISH,
        CallState.PLAYING_AUDIO_SPANISH,
        CallState.FORWARDING,
    }
)

PLAYING_STATES = frozenset(
    {CallState.PLAYING_AUDIO_ENGLISH, CallState.PLAYING_AUDIO_SPANISH}
)

"""IVR script: prompts, announcements and audio tracks."""
import yaml
from pathlib import Path
from typing import Dict, Optional
from pydantic import BaseModel, model_validator

DEFAULT_SCRIPT_FILE = Path(__file__).parent / "data" / "script.yaml"

ENGLISH = "en"
SPANISH = "es"


class LocaleScript(BaseModel):
    """Text spoken and shown for one menu language."""

    language_name: str
    speech_locale: str
    menu_prompt: str
    menu_retry: str
    playing_announcement: str
    playing_prompt: str
    hold_announcement: str
    forwarding_prompt: str
    music_finished: str
    audio_track: str


class IvrScript(BaseModel):
    """Complete IVR script."""

    language_prompt: str
    language_retry: str
    language_locale: str = "en-US"
    locales: Dict[str, LocaleScript]
    tracks: Dict[str, str] = {}

    def locale(self, code: str) -> LocaleScript:
        """Get the script for a menu language."""
        return self.locales[code]

    @model_validator(mode="after")
    def check_menus(self) -> "IvrScript":
        """Both menu languages must be present and reference known tracks."""
        for code in (ENGLISH, SPANISH):
            if code not in self.locales:
                raise ValueError(f"IVR script has no '{code}' locale")
        for code, locale in self.locales.items():
            if locale.audio_track not in self.tracks:
                raise ValueError(
                    f"Locale '{code}' uses unknown audio track '{locale.audio_track}'"
                )
        return self


def _default_script() -> IvrScript:
    return IvrScript(
        language_prompt=(
            "Welcome to IVR Demo. Please select your language. "
            "Press 1 for English, Press 2 for Spanish."
        ),
        language_retry="Invalid input. Press 1 for English, Press 2 for Spanish.",
        locales={
            ENGLISH: LocaleScript(
                language_name="English",
                speech_locale="en-US",
                menu_prompt=(
                    "English selected. Press 1 to play a message. "
                    "Press 2 to speak to an associate."
                ),
                menu_retry=(
                    "Invalid input. Press 1 to play music. "
                    "Press 2 to speak to an associate."
                ),
                playing_announcement="Playing your music now.",
                playing_prompt="Playing English music...",
                hold_announcement="Please hold while we connect you to an associate.",
                forwarding_prompt="Connecting you to an associate...",
                music_finished="Music finished. Ending call.",
                audio_track=ENGLISH,
            ),
            SPANISH: LocaleScript(
                language_name="Spanish",
                speech_locale="es-ES",
                menu_prompt=(
                    "Español seleccionado. Presione 1 para escuchar un mensaje. "
                    "Presione 2 para hablar con un asociado."
                ),
                menu_retry=(
                    "Entrada inválida. Presione 1 para música. "
                    "Presione 2 para hablar con un asociado."
                ),
                playing_announcement="Reproduciendo su música ahora.",
                playing_prompt="Reproduciendo música en español...",
                hold_announcement="Por favor espere mientras le conectamos con un asociado.",
                forwarding_prompt="Conectando con un asociado...",
                music_finished="Música terminada. Finalizando llamada.",
                audio_track=SPANISH,
            ),
        },
        tracks={
            ENGLISH: "https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3",
            SPANISH: "https://www.soundhelix.com/examples/mp3/SoundHelix-Song-2.mp3",
        },
    )


def load_script(script_file: Optional[str] = None) -> IvrScript:
    """Load the IVR script from YAML, falling back to the built-in script."""
    path = Path(script_file) if script_file else DEFAULT_SCRIPT_FILE
    if not path.exists():
        return _default_script()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return IvrScript(**data)

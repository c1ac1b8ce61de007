"""Application configuration."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (only needed when voice_backend is "openai")
    openai_api_key: Optional[str] = None
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"

    # Twilio (calls are simulated unless all three are set)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_api_base_url: str = "https://api.twilio.com/2010-04-01"

    # Public URL of this service, used for provider webhooks
    base_url: Optional[str] = None

    # Database
    database_url: str = "sqlite+aiosqlite:///./ivr_demo.db"

    # IVR session
    voice_backend: str = "simulated"  # simulated, openai
    simulated_track_seconds: float = 30.0
    call_api_base_url: Optional[str] = None  # Remote call API; in-process if unset
    dialing_timeout_ms: Optional[int] = None  # Disabled unless set
    ivr_script_file: Optional[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def twilio_configured(self) -> bool:
        """Whether real outbound calls can be placed."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_phone_number
        )


settings = Settings()

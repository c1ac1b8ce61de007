"""Events consumed by the call state machine."""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class CallEvent(BaseModel):
    """Base class for state machine events."""

    model_config = ConfigDict(frozen=True)


class Initiate(CallEvent):
    """User asked to place a call to `number`."""

    number: str


class Answer(CallEvent):
    """The ringing phone was picked up."""


class HangUp(CallEvent):
    """Terminate the call."""


class Digit(CallEvent):
    """A touch-tone keypress."""

    digit: str


class TimerFired(CallEvent):
    """A scheduled timer elapsed."""

    token: str
    generation: int


class AudioEnded(CallEvent):
    """Audio playback started under `generation` completed naturally."""

    generation: int


class AudioFailed(CallEvent):
    """Audio playback started under `generation` could not start."""

    generation: int
    reason: str


class InitiationResult(CallEvent):
    """Outcome of the outbound call request made under `generation`."""

    generation: int
    ok: bool
    simulated: bool = False
    call_id: Optional[str] = None
    error: Optional[str] = None


Event = Union[
    Initiate,
    Answer,
    HangUp,
    Digit,
    TimerFired,
    AudioEnded,
    AudioFailed,
    InitiationResult,
]

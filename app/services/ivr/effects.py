"""Effect descriptors returned by the call state machine.

The state machine never touches timers, audio or the network itself. It
returns these instructions and the session manager carries them out in
order.
"""
from typing import Union

from pydantic import BaseModel, ConfigDict

from app.services.ivr.event_log import LogKind


class CallEffect(BaseModel):
    """Base class for effect descriptors."""

    model_config = ConfigDict(frozen=True)


class AppendLog(CallEffect):
    kind: LogKind
    message: str


class ClearLog(CallEffect):
    pass


class Speak(CallEffect):
    text: str
    locale: str


class PlayAudio(CallEffect):
    track_id: str
    generation: int


class StopAudio(CallEffect):
    pass


class ScheduleTimer(CallEffect):
    token: str
    delay_ms: int
    generation: int


class CancelTimers(CallEffect):
    """Cancel every pending timer not scheduled under `generation`."""

    generation: int


class CallProvider(CallEffect):
    number: str
    generation: int


Effect = Union[
    AppendLog,
    ClearLog,
    Speak,
    PlayAudio,
    StopAudio,
    ScheduleTimer,
    CancelTimers,
    CallProvider,
]

"""Call session models."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.services.ivr.call_states import CallState
from app.services.ivr.event_log import LogEntry


class CallSession:
    """The single live call session.

    Created once and reset in place between calls. `generation` is bumped
    whenever a call begins or ends so that timers and callbacks started
    for an earlier call can be recognized and dropped.
    """

    def __init__(self, target_number: str = ""):
        self.state = CallState.IDLE
        self.target_number = target_number
        self.current_prompt: Optional[str] = None
        self.generation = 0

    def __repr__(self) -> str:
        return (
            f"CallSession(state={self.state.value}, target={self.target_number!r}, "
            f"generation={self.generation})"
        )


class SessionSnapshot(BaseModel):
    """Read model exposed to the UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: CallState
    target_number: str
    log_entries: List[LogEntry] = []
    current_prompt: Optional[str] = None
    generation: int = 0

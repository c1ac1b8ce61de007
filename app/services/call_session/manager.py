"""Call session manager."""
import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Dict, Optional, Set, Type

from app.services.call_session.models import CallSession, SessionSnapshot
from app.services.ivr.effects import (
    AppendLog,
    CallEffect,
    CallProvider,
    CancelTimers,
    ClearLog,
    PlayAudio,
    ScheduleTimer,
    Speak,
    StopAudio,
)
from app.services.ivr.event_log import EventLog
from app.services.ivr.events import (
    Answer,
    AudioEnded,
    AudioFailed,
    CallEvent,
    Digit,
    HangUp,
    Initiate,
    InitiationResult,
)
from app.services.ivr.scheduler import TimerScheduler
from app.services.ivr.script import IvrScript, load_script
from app.services.ivr.state_machine import CallStateMachine
from app.services.speech.voice import AudioPlaybackError, VoiceAdapter
from app.services.telephony.initiation import CallInitiationAdapter, InitiationOutcome

logger = logging.getLogger(__name__)


class IvrSessionManager:
    """Owns the call session and carries out the state machine's effects.

    Events are processed one at a time in the order they are submitted.
    Events submitted while effects of an earlier event are still running
    (timer callbacks, audio completion, provider results) wait in the queue.
    """

    def __init__(
        self,
        scheduler: TimerScheduler,
        voice: VoiceAdapter,
        initiator: CallInitiationAdapter,
        script: Optional[IvrScript] = None,
        dialing_timeout_ms: Optional[int] = None,
    ):
        self.session = CallSession()
        self.event_log = EventLog()
        self.machine = CallStateMachine(
            self.session, script or load_script(), dialing_timeout_ms
        )
        self.scheduler = scheduler
        self.scheduler.bind(self.submit)
        self.voice = voice
        self.initiator = initiator

        self._queue: Deque[CallEvent] = deque()
        self._draining = False
        self._tasks: Set[asyncio.Task] = set()
        self._executors: Dict[Type[CallEffect], Callable[[CallEffect], None]] = {
            AppendLog: self._append_log,
            ClearLog: self._clear_log,
            Speak: self._speak,
            PlayAudio: self._play_audio,
            StopAudio: self._stop_audio,
            ScheduleTimer: self._schedule_timer,
            CancelTimers: self._cancel_timers,
            CallProvider: self._call_provider,
        }

    # ------------------------------------------------------------------
    # UI surface
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        """Get the read model shown to the UI."""
        return SessionSnapshot(
            state=self.session.state,
            target_number=self.session.target_number,
            log_entries=self.event_log.entries(),
            current_prompt=self.session.current_prompt,
            generation=self.session.generation,
        )

    def set_target_number(self, number: str) -> None:
        """Set the number the next call will dial."""
        self.session.target_number = number

    def initiate(self) -> None:
        self.submit(Initiate(number=self.session.target_number))

    def answer(self) -> None:
        self.submit(Answer())

    def hang_up(self) -> None:
        self.submit(HangUp())

    def send_digit(self, digit: str) -> None:
        self.submit(Digit(digit=digit))

    # ------------------------------------------------------------------
    # Event processing
    # ------------------------------------------------------------------

    def submit(self, event: CallEvent) -> None:
        """Queue an event and process the queue unless already processing."""
        self._queue.append(event)
        if self._draining:
            return

        self._draining = True
        try:
            while self._queue:
                current = self._queue.popleft()
                logger.debug(
                    f"[SESSION MANAGER] Processing {type(current).__name__} "
                    f"in state {self.session.state.value}"
                )
                for effect in self.machine.submit(current):
                    self._executors[type(effect)](effect)
        finally:
            self._draining = False

    def _append_log(self, effect: AppendLog) -> None:
        self.event_log.append(effect.kind, effect.message)

    def _clear_log(self, effect: ClearLog) -> None:
        self.event_log.clear()

    def _speak(self, effect: Speak) -> None:
        self.voice.speak(effect.text, effect.locale)

    def _play_audio(self, effect: PlayAudio) -> None:
        generation = effect.generation
        try:
            self.voice.play_audio(
                effect.track_id,
                lambda: self.submit(AudioEnded(generation=generation)),
            )
        except AudioPlaybackError as e:
            logger.warning(f"[SESSION MANAGER] Audio playback failed: {e}")
            self.submit(AudioFailed(generation=generation, reason=str(e)))

    def _stop_audio(self, effect: StopAudio) -> None:
        self.voice.stop_all()

    def _schedule_timer(self, effect: ScheduleTimer) -> None:
        self.scheduler.schedule_once(effect.token, effect.delay_ms, effect.generation)

    def _cancel_timers(self, effect: CancelTimers) -> None:
        self.scheduler.cancel_all(effect.generation)

    def _call_provider(self, effect: CallProvider) -> None:
        task = asyncio.get_running_loop().create_task(
            self._request_call(effect.number, effect.generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _request_call(self, number: str, generation: int) -> None:
        try:
            outcome = await self.initiator.initiate(number)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"[SESSION MANAGER] Call initiation raised - Number: {number}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            outcome = InitiationOutcome(ok=False, error=str(e) or type(e).__name__)

        self.submit(
            InitiationResult(
                generation=generation,
                ok=outcome.ok,
                simulated=outcome.simulated,
                call_id=outcome.call_id,
                error=outcome.error,
            )
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_for_requests(self) -> None:
        """Wait until in-flight provider requests have reported back."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel timers and in-flight requests and stop audio."""
        self.scheduler.shutdown()
        self.voice.stop_all()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.initiator.aclose()
        logger.info("[SESSION MANAGER] Session manager closed")

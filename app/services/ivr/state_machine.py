"""Call progression state machine."""
import logging
from typing import Callable, Dict, List, Optional, Type

from app.services.call_session.models import CallSession
from app.services.ivr import constants as c
from app.services.ivr.call_states import CallState, PLAYING_STATES
from app.services.ivr.effects import (
    AppendLog,
    CallProvider,
    CancelTimers,
    ClearLog,
    Effect,
    PlayAudio,
    ScheduleTimer,
    Speak,
    StopAudio,
)
from app.services.ivr.event_log import LogKind
from app.services.ivr.events import (
    Answer,
    AudioEnded,
    AudioFailed,
    CallEvent,
    Digit,
    HangUp,
    Initiate,
    InitiationResult,
    TimerFired,
)
from app.services.ivr.script import ENGLISH, SPANISH, IvrScript

logger = logging.getLogger(__name__)

_MENU_LOCALES = {
    CallState.MENU_ENGLISH: ENGLISH,
    CallState.MENU_SPANISH: SPANISH,
}

_PLAYING_STATE_FOR = {
    ENGLISH: CallState.PLAYING_AUDIO_ENGLISH,
    SPANISH: CallState.PLAYING_AUDIO_SPANISH,
}

_PLAYING_LOCALES = {state: code for code, state in _PLAYING_STATE_FOR.items()}


class CallStateMachine:
    """Computes `(state, event) -> (state', effects)` for the call session.

    `submit` mutates the session's state and prompt and returns effect
    descriptors. It performs no I/O; the caller executes the effects.
    """

    def __init__(
        self,
        session: CallSession,
        script: IvrScript,
        dialing_timeout_ms: Optional[int] = None,
    ):
        self.session = session
        self.script = script
        self.dialing_timeout_ms = dialing_timeout_ms
        self._awaiting_provider = False
        self._handlers: Dict[Type[CallEvent], Callable[[CallEvent], List[Effect]]] = {
            Initiate: self._on_initiate,
            InitiationResult: self._on_initiation_result,
            Answer: self._on_answer,
            HangUp: self._on_hang_up,
            Digit: self._on_digit,
            TimerFired: self._on_timer,
            AudioEnded: self._on_audio_ended,
            AudioFailed: self._on_audio_failed,
        }
        self._timer_handlers: Dict[str, Callable[[], List[Effect]]] = {
            c.TIMER_RING: self._on_ring_timer,
            c.TIMER_MENU: self._on_menu_timer,
            c.TIMER_AUDIO_START: self._on_audio_start_timer,
            c.TIMER_FORCE_END: self._on_force_end_timer,
            c.TIMER_FORWARD_END: self._on_forward_end_timer,
            c.TIMER_IDLE_RESET: self._on_idle_reset_timer,
            c.TIMER_DIAL_TIMEOUT: self._on_dial_timeout_timer,
        }

    @property
    def state(self) -> CallState:
        return self.session.state

    def submit(self, event: CallEvent) -> List[Effect]:
        """Apply one event and return the effects to execute, in order."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported call event: {type(event).__name__}")

        old_state = self.session.state
        effects = handler(event)
        if old_state != self.session.state:
            logger.info(
                f"[STATE MACHINE] State changed: {old_state.value} -> "
                f"{self.session.state.value} (event: {type(event).__name__})"
            )
        return effects

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _schedule(self, token: str, delay_ms: int) -> ScheduleTimer:
        return ScheduleTimer(
            token=token, delay_ms=delay_ms, generation=self.session.generation
        )

    def _announce(
        self,
        state: CallState,
        prompt: str,
        log_message: str,
        speech: str,
        locale: str,
    ) -> List[Effect]:
        """Enter an announcement state: system log first, then speech."""
        self.session.state = state
        self.session.current_prompt = prompt
        return [
            AppendLog(kind=LogKind.SYSTEM, message=log_message),
            Speak(text=speech, locale=locale),
        ]

    def _hang_up(self) -> List[Effect]:
        self.session.state = CallState.ENDED
        self.session.current_prompt = None
        self.session.generation += 1
        self._awaiting_provider = False
        return [
            StopAudio(),
            AppendLog(kind=LogKind.WARNING, message=c.MSG_CALL_ENDED),
            CancelTimers(generation=self.session.generation),
            self._schedule(c.TIMER_IDLE_RESET, c.IDLE_RESET_DELAY_MS),
        ]

    def _is_stale(self, generation: int) -> bool:
        return generation != self.session.generation

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_initiate(self, event: Initiate) -> List[Effect]:
        if self.state != CallState.IDLE:
            logger.debug(f"[STATE MACHINE] Ignoring initiate in state {self.state.value}")
            return []

        number = event.number.strip()
        if not number:
            return [AppendLog(kind=LogKind.ERROR, message=c.MSG_NO_TARGET)]

        self.session.generation += 1
        self.session.state = CallState.DIALING
        self._awaiting_provider = True
        effects: List[Effect] = [
            AppendLog(kind=LogKind.SYSTEM, message=c.MSG_INITIATING.format(number=number)),
            CallProvider(number=number, generation=self.session.generation),
        ]
        if self.dialing_timeout_ms:
            effects.append(self._schedule(c.TIMER_DIAL_TIMEOUT, self.dialing_timeout_ms))
        return effects

    def _on_initiation_result(self, event: InitiationResult) -> List[Effect]:
        if self.state != CallState.DIALING or self._is_stale(event.generation):
            logger.debug("[STATE MACHINE] Discarding stale initiation result")
            return []

        self._awaiting_provider = False
        if not event.ok:
            self.session.state = CallState.IDLE
            error = event.error or c.MSG_UNKNOWN_ERROR
            return [
                AppendLog(kind=LogKind.ERROR, message=c.MSG_INITIATE_FAILED.format(error=error))
            ]

        if event.simulated:
            log = AppendLog(kind=LogKind.INFO, message=c.MSG_SIMULATION)
        else:
            log = AppendLog(
                kind=LogKind.SUCCESS, message=c.MSG_REAL_CALL.format(call_id=event.call_id)
            )
        return [log, self._schedule(c.TIMER_RING, c.RING_DELAY_MS)]

    def _on_answer(self, event: Answer) -> List[Effect]:
        if self.state != CallState.RINGING:
            logger.debug(f"[STATE MACHINE] Ignoring answer in state {self.state.value}")
            return []

        self.session.state = CallState.CONNECTED
        return [
            AppendLog(kind=LogKind.SUCCESS, message=c.MSG_ANSWERED),
            self._schedule(c.TIMER_MENU, c.MENU_DELAY_MS),
        ]

    def _on_hang_up(self, event: HangUp) -> List[Effect]:
        if self.state == CallState.ENDED:
            return []
        return self._hang_up()

    def _on_digit(self, event: Digit) -> List[Effect]:
        # Every keypress is logged and interrupts whatever is playing
        effects: List[Effect] = [
            AppendLog(kind=LogKind.DIGIT_INPUT, message=c.MSG_DIGIT.format(digit=event.digit)),
            StopAudio(),
        ]
        if self.state == CallState.MENU_LANGUAGE:
            effects.extend(self._select_language(event.digit))
        elif self.state in _MENU_LOCALES:
            effects.extend(self._select_action(_MENU_LOCALES[self.state], event.digit))
        return effects

    def _select_language(self, digit: str) -> List[Effect]:
        if digit == c.DIGIT_FIRST_OPTION:
            code, state = ENGLISH, CallState.MENU_ENGLISH
        elif digit == c.DIGIT_SECOND_OPTION:
            code, state = SPANISH, CallState.MENU_SPANISH
        else:
            return [
                AppendLog(kind=LogKind.WARNING, message=c.MSG_LANGUAGE_INVALID),
                Speak(text=self.script.language_retry, locale=self.script.language_locale),
            ]

        locale = self.script.locale(code)
        return self._announce(
            state,
            prompt=locale.menu_prompt,
            log_message=c.MSG_LANGUAGE_SELECTED.format(language=locale.language_name),
            speech=locale.menu_prompt,
            locale=locale.speech_locale,
        )

    def _select_action(self, code: str, digit: str) -> List[Effect]:
        locale = self.script.locale(code)

        if digit == c.DIGIT_FIRST_OPTION:
            effects = self._announce(
                _PLAYING_STATE_FOR[code],
                prompt=locale.playing_prompt,
                log_message=c.MSG_PLAYING.format(language=locale.language_name),
                speech=locale.playing_announcement,
                locale=locale.speech_locale,
            )
            effects.append(self._schedule(c.TIMER_AUDIO_START, c.AUDIO_START_DELAY_MS))
            effects.append(self._schedule(c.TIMER_FORCE_END, c.FORCE_END_DELAY_MS))
            return effects

        if digit == c.DIGIT_SECOND_OPTION:
            effects = self._announce(
                CallState.FORWARDING,
                prompt=locale.forwarding_prompt,
                log_message=c.MSG_FORWARDING,
                speech=locale.hold_announcement,
                locale=locale.speech_locale,
            )
            effects.append(self._schedule(c.TIMER_FORWARD_END, c.FORWARD_END_DELAY_MS))
            return effects

        return [
            AppendLog(kind=LogKind.WARNING, message=c.MSG_MENU_INVALID),
            Speak(text=locale.menu_retry, locale=locale.speech_locale),
        ]

    def _on_audio_ended(self, event: AudioEnded) -> List[Effect]:
        if self.state not in PLAYING_STATES or self._is_stale(event.generation):
            return []

        locale = self.script.locale(_PLAYING_LOCALES[self.state])
        effects: List[Effect] = [AppendLog(kind=LogKind.SUCCESS, message=locale.music_finished)]
        effects.extend(self._hang_up())
        return effects

    def _on_audio_failed(self, event: AudioFailed) -> List[Effect]:
        if self.state not in PLAYING_STATES or self._is_stale(event.generation):
            return []
        return [
            AppendLog(
                kind=LogKind.WARNING,
                message=c.MSG_PLAYBACK_FAILED.format(reason=event.reason),
            )
        ]

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _on_timer(self, event: TimerFired) -> List[Effect]:
        if self._is_stale(event.generation):
            logger.debug(
                f"[STATE MACHINE] Discarding stale timer '{event.token}' "
                f"(generation {event.generation}, current {self.session.generation})"
            )
            return []

        handler = self._timer_handlers.get(event.token)
        if handler is None:
            logger.warning(f"[STATE MACHINE] Unknown timer token '{event.token}'")
            return []
        return handler()

    def _on_ring_timer(self) -> List[Effect]:
        if self.state != CallState.DIALING:
            return []
        self.session.state = CallState.RINGING
        return [AppendLog(kind=LogKind.INFO, message=c.MSG_RINGING)]

    def _on_menu_timer(self) -> List[Effect]:
        if self.state != CallState.CONNECTED:
            return []
        return self._announce(
            CallState.MENU_LANGUAGE,
            prompt=self.script.language_prompt,
            log_message=c.MSG_LANGUAGE_MENU,
            speech=self.script.language_prompt,
            locale=self.script.language_locale,
        )

    def _on_audio_start_timer(self) -> List[Effect]:
        if self.state not in PLAYING_STATES:
            return []
        locale = self.script.locale(_PLAYING_LOCALES[self.state])
        return [PlayAudio(track_id=locale.audio_track, generation=self.session.generation)]

    def _on_force_end_timer(self) -> List[Effect]:
        if self.state not in PLAYING_STATES:
            return []
        return self._hang_up()

    def _on_forward_end_timer(self) -> List[Effect]:
        if self.state != CallState.FORWARDING:
            return []
        return self._hang_up()

    def _on_idle_reset_timer(self) -> List[Effect]:
        if self.state != CallState.ENDED:
            return []
        self.session.state = CallState.IDLE
        self.session.current_prompt = None
        return [ClearLog()]

    def _on_dial_timeout_timer(self) -> List[Effect]:
        if self.state != CallState.DIALING or not self._awaiting_provider:
            return []
        self._awaiting_provider = False
        self.session.state = CallState.IDLE
        self.session.generation += 1
        return [
            AppendLog(
                kind=LogKind.ERROR,
                message=c.MSG_DIAL_TIMEOUT.format(seconds=self.dialing_timeout_ms / 1000),
            )
        ]

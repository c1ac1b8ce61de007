"""Constants for the IVR call flow."""

# Timer tokens
TIMER_RING = "ring"
TIMER_MENU = "menu"
TIMER_AUDIO_START = "audio-start"
TIMER_FORCE_END = "force-end"
TIMER_FORWARD_END = "forward-end"
TIMER_IDLE_RESET = "idle-reset"
TIMER_DIAL_TIMEOUT = "dial-timeout"

# Fixed delays (milliseconds)
RING_DELAY_MS = 1500
MENU_DELAY_MS = 1000
AUDIO_START_DELAY_MS = 1500
FORCE_END_DELAY_MS = 15000
FORWARD_END_DELAY_MS = 4000
IDLE_RESET_DELAY_MS = 3000

# Menu selections
DIGIT_FIRST_OPTION = "1"
DIGIT_SECOND_OPTION = "2"

# Keys a phone keypad can send, used inside a regex character class
KEYPAD_DIGITS = "0123456789*#"

# Event log messages
MSG_NO_TARGET = "No target number provided."
MSG_INITIATING = "Initiating outbound call to {number}..."
MSG_SIMULATION = "Running in simulation mode - configure Twilio credentials for real calls"
MSG_REAL_CALL = "Real call initiated - UUID: {call_id}"
MSG_INITIATE_FAILED = "Failed to initiate call: {error}"
MSG_DIAL_TIMEOUT = "Call initiation timed out after {seconds:g}s."
MSG_RINGING = "Phone is ringing..."
MSG_ANSWERED = "Call answered."
MSG_LANGUAGE_MENU = "IVR Level 1: Playing Language Selection Prompt"
MSG_LANGUAGE_SELECTED = "Language set to {language}. Moving to Level 2."
MSG_LANGUAGE_INVALID = "Invalid Input. Replaying Level 1 Menu."
MSG_MENU_INVALID = "Invalid Input. Replaying Level 2 Menu."
MSG_PLAYING = "Action: Playing {language} Music"
MSG_FORWARDING = "Action: Forwarding Call"
MSG_PLAYBACK_FAILED = "Audio playback failed: {reason}"
MSG_CALL_ENDED = "Call ended."
MSG_DIGIT = "DTMF Received: {digit}"
MSG_UNKNOWN_ERROR = "Unknown error"

"""Fixed user-facing message strings."""

THINKING = "Thinking... :thinking_face:"
GREETING = "Hello! How can I help you today?"
EMPTY_REPLY = "(The AI service returned an empty reply.)"
ERROR_TEMPLATE = "An error occurred: {error}"

PONG_TEMPLATE = (
    "pong! :ping_pong: AI relay is working!\n"
    "Active sessions: {count}"
)

RESET_DONE = (
    ":white_check_mark: The session for this thread has been reset. "
    "The next message starts a new conversation."
)
RESET_NONE = ":information_source: This thread has no existing session."

INFO_TEMPLATE = (
    ":bar_chart: Session info:\n"
    "• Session ID: {session_id}\n"
    "• Last activity: {last_activity}\n"
    "• Total active sessions: {count}"
)
INFO_NONE_TEMPLATE = (
    ":information_source: This thread has no session.\n"
    "• Total active sessions: {count}"
)

LAST_ACTIVITY_FORMAT = "%Y-%m-%d %H:%M:%S"

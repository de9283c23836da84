"""Shared constants for delivery, scheduling and validation messages."""

# Fallback cadence when a recurrence policy cannot be evaluated
FALLBACK_INTERVAL_MINUTES = 60

# Discord rejects message content longer than this
MAX_CONTENT_LENGTH = 2000

# Default page size for message history
DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100

# Content recorded in the message log when a payload has no plain text
EMBED_ONLY_PLACEHOLDER = "[embed]"
IMAGE_ONLY_PLACEHOLDER = "[image]"
EMPTY_PAYLOAD_PLACEHOLDER = "[empty]"

# Test message sent by POST /webhooks/{id}/test
TEST_MESSAGE_CONTENT = "\U0001f9ea **Test message**"
TEST_EMBED_TITLE = "Webhook Scheduler"
TEST_EMBED_DESCRIPTION = "This is a test message from Webhook Scheduler."
TEST_EMBED_COLOR = 0x5865F2  # Discord blurple

# === Error messages ===
ERR_TARGET_DISABLED = "target disabled"
ERR_TARGET_DISABLED_CANCELLED = "target disabled, message cancelled"
ERR_TARGET_NOT_FOUND = "webhook target not found"
ERR_SCHEDULED_IN_PAST = "scheduled time must be in the future"
ERR_MESSAGE_NOT_FOUND = "message not found"
ERR_NOT_DEFERRED = "message is not a deferred message"
ERR_ALREADY_SENT = "message has already been sent and cannot be cancelled"
ERR_ALREADY_CANCELLED = "message has already been cancelled"
ERR_SCHEDULE_NOT_FOUND = "schedule not found"
ERR_TEMPLATE_NOT_FOUND = "template not found"
ERR_EMPTY_CONTENT = "message content must not be empty"
ERR_CONTENT_TOO_LONG = f"message content must be at most {MAX_CONTENT_LENGTH} characters"
ERR_NO_SCHEDULE_CONTENT = "at least one of message content, embed or image is required"

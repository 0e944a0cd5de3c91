"""Error taxonomy for Songline."""


class SonglineError(Exception):
    """Base exception for Songline.

    Every subclass carries a short machine-readable ``reason`` that the HTTP
    layer returns to dashboard callers.
    """

    reason = "internal_error"
    status_code = 500

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.reason
        super().__init__(self.message)


class ConfigurationError(SonglineError):
    """Required configuration is missing or invalid."""

    reason = "configuration_error"


class QuotaExhausted(SonglineError):
    """User has no credits left."""

    reason = "quota_exhausted"
    status_code = 402


class AlreadyGenerating(SonglineError):
    """A generation job is already in flight for this user."""

    reason = "already_generating"
    status_code = 409


class GenerationFailed(SonglineError):
    """Generation backend declined or returned unusable output."""

    reason = "generation_failed"
    status_code = 502


class DeliveryFailed(SonglineError):
    """Messaging transport could not deliver text or media."""

    reason = "delivery_failed"
    status_code = 502


class MalformedToolArguments(SonglineError):
    """Model produced an invalid tool call."""

    reason = "malformed_tool_arguments"
    status_code = 422


class PersistenceFailure(SonglineError):
    """Store could not durably record a mutation."""

    reason = "persistence_failure"


class ConversationNotFound(SonglineError):
    """No conversation exists for this user."""

    reason = "conversation_not_found"
    status_code = 404

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No conversation for user {user_id}")


class LLMError(SonglineError):
    """Language model call failed."""

    reason = "llm_error"
    status_code = 502

"""Dialogue turn models."""

from enum import Enum


class TurnOutcome(str, Enum):
    """What a single dialogue turn did."""

    REPLIED = "replied"
    GENERATED = "generated"
    QUOTA_EXHAUSTED = "quota_exhausted"
    ALREADY_GENERATING = "already_generating"
    GENERATION_FAILED = "generation_failed"
    DELIVERY_FAILED = "delivery_failed"
    MALFORMED_TOOL_CALL = "malformed_tool_call"
    MODEL_ERROR = "model_error"
    NO_RESPONSE = "no_response"

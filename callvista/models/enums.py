"""
Enumeration definitions for the CallVista backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, so enum members serialize as their plain
string values in API responses.

The call enums (CallStatus, CallType, Sentiment) are the closed internal
vocabulary every normalized call is clamped to, whatever strings a tenant's
database stores.
"""

from enum import Enum


class CallStatus(str, Enum):
    """
    Internal call outcome.

    Unrecognized raw statuses degrade to FAILED.
    """
    SUCCESSFUL = "successful"
    FAILED = "failed"
    VOICEMAIL = "voicemail"
    TRANSFERRED = "transferred"
    ONGOING = "ongoing"


class CallType(str, Enum):
    """
    Call direction.

    Unrecognized raw values degrade to INBOUND.
    """
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class Sentiment(str, Enum):
    """
    Customer sentiment detected for a call.

    Unrecognized raw values degrade to "no sentiment" (None), never to NEUTRAL.
    """
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class DisconnectCategory(str, Enum):
    """
    Category of a disconnect reason.

    - ended: the call finished normally (either side hung up, voicemail reached)
    - not_connected: the call never connected (busy, no answer, declined)
    - error: telephony/LLM/platform failure, and any reason nobody mapped yet
    """
    ENDED = "ended"
    NOT_CONNECTED = "not_connected"
    ERROR = "error"


class TimeRange(str, Enum):
    """
    Dashboard time range filter.

    Also selects the bucketing of time series:
    - today: hourly buckets 00:00-23:00
    - week / all: weekday buckets Mon-Sun
    - month: day-of-month buckets, empty days omitted
    """
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class FieldMappingSource(str, Enum):
    """Where a tenant's field mapping came from."""
    MANUAL = "manual"
    DETECTED = "detected"
    DEFAULT = "default"

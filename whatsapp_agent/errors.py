"""Error taxonomy shared across layers."""

from __future__ import annotations


class AssistantError(Exception):
    """Base class for expected, recoverable assistant failures."""


class InvalidSchedule(AssistantError):
    """Reminder timing input was absent or could not be parsed."""


class TranscriptionFailure(AssistantError):
    """Audio could not be downloaded or transcribed."""


class ExternalCollaboratorFailure(AssistantError):
    """A remote API behind a tool (calendar, search, model) failed."""


class DeliveryFailure(AssistantError):
    """The messaging transport rejected or failed an outbound send."""


class Unauthorized(AssistantError):
    """Trigger endpoint called without the shared secret."""

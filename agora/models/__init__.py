"""
Agora Models Package
Contains all Pydantic data models for the investor-relations conflict engine
"""

from .calendar import (
    EventType,
    RSVPStatus,
    EVENT_TYPES,
    Event,
    RSVP
)

from .conflicts import (
    ConflictType,
    Severity,
    DiagnosticKind,
    Conflict,
    ConflictDiagnostic,
    ConflictReport,
    ConflictSummary,
    ConflictThresholds,
    THRESHOLD_ENV_VARS
)

__all__ = [
    # Calendar Models
    'EventType',
    'RSVPStatus',
    'EVENT_TYPES',
    'Event',
    'RSVP',

    # Conflict Models
    'ConflictType',
    'Severity',
    'DiagnosticKind',
    'Conflict',
    'ConflictDiagnostic',
    'ConflictReport',
    'ConflictSummary',
    'ConflictThresholds',
    'THRESHOLD_ENV_VARS'
]

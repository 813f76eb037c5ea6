"""
Conflict Data Models
Pydantic models for conflict findings, reports and detection thresholds
"""

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional


ConflictType = Literal['overlap', 'adjacent', 'travel_time']
Severity = Literal['high', 'medium', 'low']
DiagnosticKind = Literal['invalid_record', 'unparseable_date', 'unparseable_time', 'inverted_time_range']


class Conflict(BaseModel):
    """One finding between a pair of events"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event_id: str
    event_title: str
    conflicting_event_id: str
    conflicting_event_title: str
    conflict_type: ConflictType
    severity: Severity
    description: str


class ConflictDiagnostic(BaseModel):
    """Event that was left out of conflict evaluation, and why"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event_id: Optional[str] = None
    kind: DiagnosticKind
    message: str


class ConflictReport(BaseModel):
    """Result of one detection run"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_conflicts: bool
    conflicts: List[Conflict]
    total_conflicts: int
    diagnostics: List[ConflictDiagnostic] = Field(default_factory=list)
    skipped_events: int = 0


class ConflictSummary(BaseModel):
    """Conflict counts by severity"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    high: int
    medium: int
    low: int
    has_conflicts: bool


# Environment variable for each threshold field
THRESHOLD_ENV_VARS = {
    'overlap_high_minutes': 'AGORA_OVERLAP_HIGH_MINUTES',
    'overlap_medium_minutes': 'AGORA_OVERLAP_MEDIUM_MINUTES',
    'adjacent_minutes': 'AGORA_ADJACENT_MINUTES',
    'adjacent_high_minutes': 'AGORA_ADJACENT_HIGH_MINUTES',
    'travel_buffer_minutes': 'AGORA_TRAVEL_BUFFER_MINUTES',
    'virtual_location': 'AGORA_VIRTUAL_LOCATION',
}


class ConflictThresholds(BaseModel):
    """
    Every limit the detector applies, in minutes.

    Overlaps longer than overlap_high_minutes are high, those of at least
    overlap_medium_minutes medium, anything shorter low. Gaps strictly between
    zero and adjacent_minutes are adjacent conflicts (high below
    adjacent_high_minutes). Events at different physical venues need at least
    travel_buffer_minutes between them.
    """
    model_config = ConfigDict(frozen=True)

    overlap_high_minutes: float = Field(default=60, ge=0)
    overlap_medium_minutes: float = Field(default=30, ge=0)
    adjacent_minutes: float = Field(default=30, ge=0)
    adjacent_high_minutes: float = Field(default=15, ge=0)
    travel_buffer_minutes: float = Field(default=60, ge=0)
    virtual_location: str = 'Virtual'

    @model_validator(mode='after')
    def bands_are_ordered(self) -> 'ConflictThresholds':
        if self.overlap_medium_minutes > self.overlap_high_minutes:
            raise ValueError('overlap_medium_minutes must not exceed overlap_high_minutes')
        if self.adjacent_high_minutes > self.adjacent_minutes:
            raise ValueError('adjacent_high_minutes must not exceed adjacent_minutes')
        return self

    @classmethod
    def from_env(cls) -> 'ConflictThresholds':
        """Build thresholds from AGORA_* environment variables, falling back to defaults"""
        overrides = {}
        for field, env_var in THRESHOLD_ENV_VARS.items():
            value = os.environ.get(env_var)
            if value is not None and value.strip():
                overrides[field] = value.strip()
        return cls(**overrides)

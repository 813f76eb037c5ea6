"""
Calendar Data Models
Pydantic models for investor-relations events and their RSVPs
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional


EventType = Literal['earnings', 'meeting', 'conference', 'roadshow']
RSVPStatus = Literal['accepted', 'declined', 'tentative']

EVENT_TYPES = ('earnings', 'meeting', 'conference', 'roadshow')


class Event(BaseModel):
    """Scheduled company event as supplied by the event source"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    company: str
    type: EventType
    date: str  # ISO 8601 calendar date
    start_time: str  # '14:00' or '2:00 PM'
    end_time: str
    location: str
    rsvps: Dict[str, RSVPStatus] = Field(default_factory=dict)
    market_cap: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    created_by: Optional[str] = None
    assigned_to: List[str] = Field(default_factory=list)

    @field_validator('id', 'title', 'company', 'date', 'start_time', 'end_time')
    @classmethod
    def value_nonempty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    def has_rsvp(self, user_id: str) -> bool:
        """True when the user has any response recorded, whatever its value"""
        return user_id in self.rsvps


class RSVP(BaseModel):
    """Single RSVP row as exported alongside an event"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_id: str
    event_title: Optional[str] = None
    attendee_email: str
    attendee_name: Optional[str] = None
    response: RSVPStatus
    response_date: Optional[str] = None

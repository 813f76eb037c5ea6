from typing import Any, Dict, Iterable, List

from agora.lib.action import Action
from agora.models import Conflict, Event


SEVERITY_RANK = {'low': 1, 'medium': 2, 'high': 3}


class EventConflictAnnotator(Action):
    """Action to attach per-event conflict details to event rows"""

    def __init__(self, events: Iterable[Event], thresholds=None):
        super().__init__(thresholds)
        self.events = list(events)
        self.events_by_id = {event.id: event for event in self.events}
        self.set_origin_column_name('id')

    def event_conflicts(self, row: Dict[str, Any]) -> List[Conflict]:
        """Conflicts of the row's event against the rest of the set"""
        event = self.events_by_id.get(self.default_action(row))
        if event is None:
            return []
        return self.detector.conflicts_for_event(event, self.events)

    def count_conflicts(self, row: Dict[str, Any]) -> int:
        return len(self.event_conflicts(row))

    def highest_severity(self, row: Dict[str, Any]) -> str:
        conflicts = self.event_conflicts(row)
        if not conflicts:
            return ''
        return max((conflict.severity for conflict in conflicts), key=SEVERITY_RANK.get)

"""
Conflict Detector
Finds overlapping, back-to-back and travel-constrained pairs among scheduled events
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from agora.models import (
    Conflict,
    ConflictDiagnostic,
    ConflictReport,
    ConflictSummary,
    ConflictThresholds,
    Event
)
from agora.conflict_detector.schedule import ScheduledEvent, schedule_event

logger = logging.getLogger(__name__)

EventLike = Union[Event, Mapping[str, Any]]


class ConflictDetector:
    """Detects scheduling conflicts between events using injected thresholds"""

    def __init__(self, thresholds: Optional[ConflictThresholds] = None):
        self.thresholds = thresholds or ConflictThresholds()

    def detect(self, events: Iterable[EventLike], user_filter: Optional[str] = None) -> ConflictReport:
        """
        Run pairwise detection over a snapshot of events.

        With a user_filter only events the user has an RSVP entry for are
        considered. Events are compared in (date, start time) order, so the
        earlier event of a pair is reported first. Records that cannot be
        evaluated are skipped and returned as diagnostics.
        """
        diagnostics: List[ConflictDiagnostic] = []
        if user_filter:
            events = [item for item in events if self._in_scope(item, user_filter)]
        records = self._coerce_events(events, diagnostics)

        scheduled = self._schedule_events(records, diagnostics)
        scheduled.sort(key=lambda item: (item.day, item.start))

        conflicts: List[Conflict] = []
        for index, first in enumerate(scheduled):
            for second in scheduled[index + 1:]:
                # Sorted by day, so nothing further along shares this date
                if second.day != first.day:
                    break
                conflicts.extend(self._check_pair(first, second))

        return ConflictReport(
            has_conflicts=len(conflicts) > 0,
            conflicts=conflicts,
            total_conflicts=len(conflicts),
            diagnostics=diagnostics,
            skipped_events=len(diagnostics)
        )

    def summarize(self, events: Iterable[EventLike], user_filter: Optional[str] = None) -> ConflictSummary:
        """Count the conflicts of a detection run by severity"""
        return summarize_report(self.detect(events, user_filter))

    def conflicts_for_event(self, event: EventLike, all_events: Iterable[EventLike]) -> List[Conflict]:
        """
        Conflicts between one event and the rest of the set.

        The given event is always the first side of every finding, whatever
        its position in all_events.
        """
        diagnostics: List[ConflictDiagnostic] = []
        subjects = self._schedule_events(self._coerce_events([event], diagnostics), diagnostics)
        if not subjects:
            return []
        subject = subjects[0]

        others = [
            other for other in self._coerce_events(all_events, diagnostics)
            if other.id != subject.event.id
        ]

        conflicts: List[Conflict] = []
        for other in self._schedule_events(others, diagnostics):
            if other.day != subject.day:
                continue
            conflicts.extend(self._check_pair(subject, other))
        return conflicts

    @staticmethod
    def _in_scope(item: Any, user_filter: str) -> bool:
        """Whether the user has an RSVP entry on an event or raw event mapping"""
        if isinstance(item, Event):
            return item.has_rsvp(user_filter)
        if isinstance(item, Mapping):
            rsvps = item.get('rsvps')
            return isinstance(rsvps, Mapping) and user_filter in rsvps
        return False

    def _coerce_events(self, events: Iterable[EventLike], diagnostics: List[ConflictDiagnostic]) -> List[Event]:
        """Validate raw mappings into Event records, recording the ones that fail"""
        records = []
        for item in events:
            if isinstance(item, Event):
                records.append(item)
                continue
            try:
                records.append(Event.model_validate(item))
            except ValidationError as e:
                event_id = item.get('id') if isinstance(item, Mapping) else None
                fields = ', '.join(str(error['loc'][0]) for error in e.errors() if error['loc'])
                diagnostic = ConflictDiagnostic(
                    event_id=str(event_id) if event_id is not None else None,
                    kind='invalid_record',
                    message=f"Invalid event record ({fields or 'record'}): {e.error_count()} validation error(s)"
                )
                logger.warning(f"Skipping event {diagnostic.event_id}: {diagnostic.message}")
                diagnostics.append(diagnostic)
        return records

    def _schedule_events(self, events: List[Event], diagnostics: List[ConflictDiagnostic]) -> List[ScheduledEvent]:
        """Parse events onto their day, recording the ones that cannot be compared"""
        scheduled = []
        for event in events:
            item, diagnostic = schedule_event(event)
            if diagnostic is not None:
                logger.warning(f"Skipping event {diagnostic.event_id}: {diagnostic.message}")
                diagnostics.append(diagnostic)
                continue
            scheduled.append(item)
        return scheduled

    def _check_pair(self, first: ScheduledEvent, second: ScheduledEvent) -> List[Conflict]:
        """Run the overlap, adjacency and travel checks for one same-day pair"""
        thresholds = self.thresholds
        conflicts = []

        overlap_minutes = min(first.end, second.end) - max(first.start, second.start)
        if overlap_minutes > 0:
            conflicts.append(self._conflict(
                first, second, 'overlap',
                self._overlap_severity(overlap_minutes),
                f"Events overlap by {overlap_minutes / 60:.1f} hours"
            ))

        # Negative for overlapping pairs: no adjacency, but no time to travel either
        earlier, later = (first, second) if first.start <= second.start else (second, first)
        gap_minutes = later.start - earlier.end

        if 0 < gap_minutes < thresholds.adjacent_minutes:
            severity = 'high' if gap_minutes < thresholds.adjacent_high_minutes else 'medium'
            conflicts.append(self._conflict(
                first, second, 'adjacent', severity,
                f"Events are {gap_minutes:.0f} minutes apart"
            ))

        if self._needs_travel(first.event, second.event) and gap_minutes < thresholds.travel_buffer_minutes:
            conflicts.append(self._conflict(
                first, second, 'travel_time', 'medium',
                f"Insufficient travel time between {first.event.location} and {second.event.location}"
            ))

        return conflicts

    def _overlap_severity(self, overlap_minutes: float) -> str:
        if overlap_minutes > self.thresholds.overlap_high_minutes:
            return 'high'
        if overlap_minutes >= self.thresholds.overlap_medium_minutes:
            return 'medium'
        return 'low'

    def _needs_travel(self, first: Event, second: Event) -> bool:
        virtual = self.thresholds.virtual_location
        return first.location != second.location and virtual not in (first.location, second.location)

    @staticmethod
    def _conflict(first: ScheduledEvent, second: ScheduledEvent, conflict_type: str, severity: str, description: str) -> Conflict:
        return Conflict(
            event_id=first.event.id,
            event_title=first.event.title,
            conflicting_event_id=second.event.id,
            conflicting_event_title=second.event.title,
            conflict_type=conflict_type,
            severity=severity,
            description=description
        )


def summarize_report(report: ConflictReport) -> ConflictSummary:
    severities = [conflict.severity for conflict in report.conflicts]
    return ConflictSummary(
        total=report.total_conflicts,
        high=severities.count('high'),
        medium=severities.count('medium'),
        low=severities.count('low'),
        has_conflicts=report.has_conflicts
    )


def detect_conflicts(events: Iterable[EventLike], user_filter: Optional[str] = None,
                     thresholds: Optional[ConflictThresholds] = None) -> ConflictReport:
    """Check a snapshot of events for scheduling conflicts"""
    return ConflictDetector(thresholds).detect(events, user_filter)


def get_conflict_summary(events: Iterable[EventLike], user_filter: Optional[str] = None,
                         thresholds: Optional[ConflictThresholds] = None) -> ConflictSummary:
    """Conflict counts by severity, for dashboards and analytics"""
    return ConflictDetector(thresholds).summarize(events, user_filter)


def get_event_conflicts(event: EventLike, all_events: Iterable[EventLike],
                        thresholds: Optional[ConflictThresholds] = None) -> List[Conflict]:
    """Conflicts involving a single event, with that event always reported first"""
    return ConflictDetector(thresholds).conflicts_for_event(event, all_events)

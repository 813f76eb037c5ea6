import json
import math
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from pydantic import ValidationError

from agora.lib.action import Action
from agora.models import Event, RSVP, EVENT_TYPES


# Columns an event import must carry, as named by the event source
REQUIRED_COLUMNS = ['title', 'company', 'type', 'date', 'startTime', 'endTime', 'location']
RSVP_COLUMNS = ['eventId', 'attendeeEmail', 'response']

DEMO_EVENTS_FILE = Path(__file__).resolve().parent.parent / 'seed_data' / 'events.json'

logger = logging.getLogger(__name__)


class EventLoader(Action):
    """Action to validate raw event rows into Event records"""

    def __init__(self, thresholds=None):
        super().__init__(thresholds)

    def read_events_csv(self, file_path: str) -> pd.DataFrame:
        """Read an event import CSV, rejecting files without the required columns"""
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        return self.prepare_frame(df)

    def read_events_json(self, file_path: str) -> pd.DataFrame:
        """Read a JSON list of event objects"""
        with open(file_path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of events in {file_path}, got {type(data).__name__}")
        return self.prepare_frame(pd.DataFrame(data), check_columns=False)

    def read_events(self, file_path: str) -> pd.DataFrame:
        """Read events from a .json or .csv file"""
        if str(file_path).lower().endswith('.json'):
            return self.read_events_json(file_path)
        return self.read_events_csv(file_path)

    def prepare_frame(self, df: pd.DataFrame, check_columns: bool = True) -> pd.DataFrame:
        """
        Check the columns of an event frame and number its rows.

        Rows without an id get 'csv-<row number>', the way imported events
        are keyed before the event source assigns its own.
        """
        if check_columns:
            missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
            if missing:
                raise ValueError('; '.join(f"Missing required field: {column}" for column in missing))

        df = df.copy()
        df['row_number'] = range(1, len(df) + 1)
        if 'id' not in df.columns:
            df['id'] = ''
        df['id'] = [
            self._clean_id(value) or f"csv-{row_number}"
            for value, row_number in zip(df['id'], df['row_number'])
        ]
        return df

    def attach_rsvps(self, events_df: pd.DataFrame, rsvps_df: pd.DataFrame) -> pd.DataFrame:
        """Fold exported RSVP rows (eventId, attendeeEmail, response) into each event's rsvps map"""
        missing = [column for column in RSVP_COLUMNS if column not in rsvps_df.columns]
        if missing:
            raise ValueError('; '.join(f"Missing required RSVP field: {column}" for column in missing))

        responses: Dict[str, Dict[str, str]] = {}
        for index, row in enumerate(rsvps_df.to_dict('records')):
            try:
                rsvp = RSVP.model_validate({k: v for k, v in row.items() if not self._is_blank(v)})
            except ValidationError as e:
                logger.warning(f"Skipping RSVP row {index + 1}: {e.error_count()} validation error(s)")
                continue
            responses.setdefault(rsvp.event_id, {})[rsvp.attendee_email] = rsvp.response

        events_df = events_df.copy()
        existing = events_df['rsvps'] if 'rsvps' in events_df.columns else [None] * len(events_df)
        merged = []
        for event_id, current in zip(events_df['id'], existing):
            rsvps = dict(current) if isinstance(current, dict) else {}
            rsvps.update(responses.get(event_id, {}))
            merged.append(rsvps)
        events_df['rsvps'] = merged

        logger.info(f"Attached {sum(len(r) for r in responses.values())} RSVPs to {len(events_df)} events")
        return events_df

    def validate_event(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a single event row.

        Returns {'event': Event or None, 'error': message or None} so the
        result survives a trip through a worker pool.
        """
        row = dict(row)
        row_number = row.pop('row_number', None)
        label = f"Row {row_number}" if row_number is not None else f"Event {row.get('id')}"

        values = {key: value for key, value in row.items() if not self._is_blank(value)}
        if 'type' not in values:
            values['type'] = 'meeting'
        elif values['type'] not in EVENT_TYPES:
            return {'event': None, 'error': f"{label}: Invalid event type '{values['type']}'"}

        rsvps = values.get('rsvps')
        if isinstance(rsvps, str):
            try:
                values['rsvps'] = json.loads(rsvps)
            except json.JSONDecodeError:
                return {'event': None, 'error': f"{label}: rsvps is not valid JSON"}

        try:
            event = Event.model_validate(values)
        except ValidationError as e:
            problems = ', '.join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
            )
            return {'event': None, 'error': f"{label}: {problems}"}

        return {'event': event, 'error': None}

    def load_events(self, file_path: str, rsvps_file: Optional[str] = None) -> Tuple[List[Event], List[str]]:
        """Read and validate events from a file, returning (events, row errors)"""
        df = self.read_events(file_path)
        if rsvps_file:
            df = self.attach_rsvps(df, pd.read_csv(rsvps_file, dtype=str, keep_default_na=False))
        results = [self.validate_event(row) for row in df.to_dict('records')]
        return self.collect(results)

    def collect(self, results: List[Dict[str, Any]]) -> Tuple[List[Event], List[str]]:
        """Split validate_event results into valid events and error messages"""
        events = [result['event'] for result in results if result['event'] is not None]
        errors = [result['error'] for result in results if result['error'] is not None]
        for error in errors:
            logger.warning(error)
        return events, errors

    @staticmethod
    def _clean_id(value) -> str:
        if EventLoader._is_blank(value):
            return ''
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    @staticmethod
    def _is_blank(value) -> bool:
        if value is None:
            return True
        if isinstance(value, float) and math.isnan(value):
            return True
        return isinstance(value, str) and not value.strip()


def load_demo_events() -> List[Event]:
    """Fresh Event records for the bundled July/August 2025 demo calendar"""
    with open(DEMO_EVENTS_FILE, 'r') as f:
        data = json.load(f)
    return [Event.model_validate(item) for item in data]

import logging
from typing import List, Optional

import pandas as pd

from agora.lib.pipeline import Pipeline
from agora.models import ConflictReport, Event
from agora.conflict_detector.detector import summarize_report
from agora.conflict_detector.event_loader import EventLoader, load_demo_events
from agora.conflict_detector.event_annotator import EventConflictAnnotator

CONFLICT_COLUMNS = [
    'eventId',
    'eventTitle',
    'conflictingEventId',
    'conflictingEventTitle',
    'conflictType',
    'severity',
    'description'
]

EVENT_COLUMNS = ['id', 'title', 'company', 'date', 'startTime', 'endTime', 'location']


class ConflictReportPipeline(Pipeline):
    def __init__(self, thresholds=None, parallel: bool = False):
        super().__init__()
        self.parallel = parallel
        self.events: List[Event] = []
        self.load_errors: List[str] = []
        self.report: Optional[ConflictReport] = None
        self.summary = None
        self.events_file_output = None

        # Setup logging
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
        self.logger = logging.getLogger(__name__)

        self.loader = EventLoader(thresholds)
        self.thresholds = self.loader.thresholds

    def load_events(self, rsvps_file: Optional[str] = None, demo: bool = False) -> List[Event]:
        """Load events from csv_file_input (CSV or JSON) or from the bundled demo calendar"""
        if demo:
            self.events = load_demo_events()
            self.load_errors = []
            self.logger.info(f"Loaded {len(self.events)} demo events")
            return self.events

        if str(self.csv_file_input).lower().endswith('.json'):
            self.console.log(f"Reading JSON {self.csv_file_input}...")
            self.df = self.loader.read_events_json(self.csv_file_input)
        else:
            self.read_csv()
            self.df = self.loader.prepare_frame(self.df)

        if rsvps_file:
            rsvps_df = pd.read_csv(rsvps_file, dtype=str, keep_default_na=False)
            self.df = self.loader.attach_rsvps(self.df, rsvps_df)

        self.execute_action(self.loader.validate_event, 'validated', parallel=self.parallel)
        self.events, self.load_errors = self.loader.collect(list(self.df['validated']))

        self.logger.info(f"Loaded {len(self.events)} events ({len(self.load_errors)} rows rejected)")
        return self.events

    def detect(self, user_filter: Optional[str] = None) -> ConflictReport:
        """Run conflict detection over the loaded events"""
        scope = f"user {user_filter}" if user_filter else "all events"
        self.logger.info(f"Detecting conflicts for {scope}...")

        self.report = self.loader.detector.detect(self.events, user_filter)
        self.summary = summarize_report(self.report)

        self.logger.info(
            f"Found {self.summary.total} conflicts "
            f"(high: {self.summary.high}, medium: {self.summary.medium}, low: {self.summary.low})"
        )
        if self.report.skipped_events:
            self.logger.warning(f"{self.report.skipped_events} events were skipped:")
            for diagnostic in self.report.diagnostics:
                self.logger.warning(f"  - [{diagnostic.kind}] {diagnostic.message}")
        return self.report

    def save_conflicts(self):
        """Write the conflicts of the last detection run to csv_file_output"""
        rows = [conflict.model_dump(by_alias=True) for conflict in self.report.conflicts]
        self.df = pd.DataFrame(rows, columns=CONFLICT_COLUMNS)
        self.save_csv()

    def annotate_events(self) -> pd.DataFrame:
        """Per-event conflict counts and highest severity, written to events_file_output"""
        annotator = EventConflictAnnotator(self.events, self.thresholds)
        rows = [event.model_dump(by_alias=True) for event in self.events]
        self.df = pd.DataFrame(rows, columns=EVENT_COLUMNS)

        self.execute_action(annotator.count_conflicts, 'conflictCount', parallel=self.parallel)
        self.execute_action(annotator.highest_severity, 'highestSeverity', parallel=self.parallel)

        if self.events_file_output:
            self.console.log(f"Saving event annotations to {self.events_file_output}...")
            self.df.to_csv(self.events_file_output, index=False)
        return self.df

    def process(self, user_filter: Optional[str] = None, rsvps_file: Optional[str] = None,
                demo: bool = False) -> ConflictReport:
        """Load events, detect conflicts and write the requested outputs"""
        self.logger.info("Starting Conflict Report Pipeline")
        self.logger.info("=" * 50)

        self.load_events(rsvps_file=rsvps_file, demo=demo)
        if self.load_errors:
            self.logger.warning(f"{len(self.load_errors)} rows could not be imported")

        self.detect(user_filter)

        if self.csv_file_output:
            self.save_conflicts()
        if self.events_file_output:
            self.annotate_events()

        self.logger.info("Pipeline completed successfully!")
        return self.report


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Investor-relations event conflict report')
    parser.add_argument('--input', help='Events file (.csv or .json)')
    parser.add_argument('--rsvps', help='RSVP CSV (eventId, attendeeEmail, response) to merge into events')
    parser.add_argument('--user', help='Only check events this user has an RSVP for')
    parser.add_argument('--output', default='output/conflicts.csv', help='Conflicts CSV to write')
    parser.add_argument('--events-output', help='Optional CSV of events with per-event conflict counts')
    parser.add_argument('--demo', action='store_true', help='Use the bundled demo calendar instead of --input')
    parser.add_argument('--parallel', action='store_true', help='Validate and annotate rows in a worker pool')

    args = parser.parse_args()
    if not args.demo and not args.input:
        parser.error('--input is required unless --demo is given')

    pipeline = ConflictReportPipeline(parallel=args.parallel)
    pipeline.csv_file_input = args.input
    pipeline.csv_file_output = args.output
    pipeline.events_file_output = args.events_output

    pipeline.process(user_filter=args.user, rsvps_file=args.rsvps, demo=args.demo)

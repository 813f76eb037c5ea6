"""
Pytest tests for the conflict report pipeline
End-to-end runs from event files to conflict CSVs
"""

import pandas as pd
import pytest

from agora.models import ConflictThresholds
from agora.conflict_detector.pipeline import CONFLICT_COLUMNS, ConflictReportPipeline


class TestConflictReportPipeline:
    """Test suite for the batch conflict report"""

    @pytest.fixture
    def pipeline(self, tmp_path):
        pipeline = ConflictReportPipeline(thresholds=ConflictThresholds())
        pipeline.csv_file_output = tmp_path / "output" / "conflicts.csv"
        return pipeline

    @pytest.fixture
    def events_csv(self, tmp_path):
        path = tmp_path / "events.csv"
        path.write_text(
            "id,title,company,type,date,startTime,endTime,location\n"
            "a,Q2 Earnings Call,Apple Inc.,earnings,2025-07-15,09:00,10:00,New York NY\n"
            "b,Analyst Meeting,Microsoft Corp.,meeting,2025-07-15,10:10,11:00,Boston MA\n"
            "c,Broken,Tesla Inc.,roadshow,2025-07-15,11:00,10:00,Virtual\n"
            "d,,Adobe Inc.,meeting,2025-07-15,09:00,10:00,Virtual\n"
        )
        return path

    def test_demo_report(self, pipeline):
        """Demo calendar report lands in a freshly created output directory"""
        report = pipeline.process(demo=True)

        assert report.total_conflicts == 8
        assert pipeline.summary.medium == 8

        written = pd.read_csv(pipeline.csv_file_output, dtype=str)
        assert list(written.columns) == CONFLICT_COLUMNS
        assert len(written) == 8
        assert written.iloc[0]['eventId'] == '1'
        assert written.iloc[0]['conflictingEventId'] == '2'
        assert written.iloc[0]['conflictType'] == 'overlap'
        print(f"✅ Demo report: {len(written)} conflicts written")

    def test_csv_report_with_bad_rows(self, pipeline, events_csv):
        """Rejected rows and degenerate events are reported, the rest is checked"""
        pipeline.csv_file_input = events_csv

        report = pipeline.process()

        assert [event.id for event in pipeline.events] == ['a', 'b', 'c']
        assert len(pipeline.load_errors) == 1
        assert pipeline.load_errors[0].startswith('Row 4:')
        assert [(d.event_id, d.kind) for d in report.diagnostics] == [('c', 'inverted_time_range')]
        assert [(c.conflict_type, c.severity) for c in report.conflicts] == [
            ('adjacent', 'high'),
            ('travel_time', 'medium'),
        ]

    def test_user_scoped_report(self, pipeline, tmp_path):
        events = tmp_path / "events.csv"
        events.write_text(
            "id,title,company,type,date,startTime,endTime,location\n"
            "a,Call,Apple Inc.,earnings,2025-07-15,09:00,10:00,Virtual\n"
            "b,Meeting,Microsoft Corp.,meeting,2025-07-15,09:30,10:30,Virtual\n"
            "c,Briefing,Meta Platforms,meeting,2025-07-15,09:45,10:15,Virtual\n"
        )
        rsvps = tmp_path / "rsvps.csv"
        rsvps.write_text(
            "eventId,attendeeEmail,response\n"
            "a,analyst.manager@company.com,accepted\n"
            "c,analyst.manager@company.com,declined\n"
        )
        pipeline.csv_file_input = events

        report = pipeline.process(user_filter='analyst.manager@company.com', rsvps_file=str(rsvps))

        assert [(c.event_id, c.conflicting_event_id) for c in report.conflicts] == [('a', 'c')]
        assert pipeline.summary.low == 1

    def test_empty_report_keeps_header(self, pipeline, tmp_path):
        events = tmp_path / "events.json"
        events.write_text(
            '[{"id": "solo", "title": "Call", "company": "Apple Inc.", "type": "earnings",'
            ' "date": "2025-07-15", "startTime": "09:00", "endTime": "10:00", "location": "Virtual"}]'
        )
        pipeline.csv_file_input = events

        report = pipeline.process()

        assert not report.has_conflicts
        written = pd.read_csv(pipeline.csv_file_output)
        assert list(written.columns) == CONFLICT_COLUMNS
        assert written.empty

    def test_event_annotations(self, pipeline, tmp_path):
        """Per-event counts use the single-event view of the detector"""
        pipeline.events_file_output = tmp_path / "events_annotated.csv"

        pipeline.process(demo=True)

        annotated = pd.read_csv(pipeline.events_file_output, dtype=str, keep_default_na=False)
        by_id = annotated.set_index('id')
        assert by_id.loc['1', 'conflictCount'] == '1'
        assert by_id.loc['1', 'highestSeverity'] == 'medium'
        assert by_id.loc['3', 'conflictCount'] == '0'
        assert by_id.loc['3', 'highestSeverity'] == ''
        assert by_id.loc['14', 'conflictCount'] == '2'
        assert by_id.loc['24', 'conflictCount'] == '2'

    def test_parallel_run_matches_sequential(self, tmp_path, events_csv):
        """Row actions sent through the worker pool give the same results"""
        runs = {}
        for parallel in (False, True):
            pipeline = ConflictReportPipeline(thresholds=ConflictThresholds(), parallel=parallel)
            pipeline.csv_file_input = events_csv
            pipeline.csv_file_output = tmp_path / f"conflicts_{parallel}.csv"
            pipeline.events_file_output = tmp_path / f"events_{parallel}.csv"

            report = pipeline.process()

            runs[parallel] = (
                [event.id for event in pipeline.events],
                pipeline.load_errors,
                report.model_dump(),
                pd.read_csv(pipeline.events_file_output, dtype=str, keep_default_na=False),
            )

        sequential, parallel = runs[False], runs[True]
        assert parallel[0] == sequential[0] == ['a', 'b', 'c']
        assert parallel[1] == sequential[1]
        assert parallel[2] == sequential[2]
        pd.testing.assert_frame_equal(parallel[3], sequential[3])
        assert list(parallel[3]['conflictCount']) == ['2', '2', '0']
        assert list(parallel[3]['highestSeverity']) == ['high', 'high', '']


if __name__ == "__main__":
    # Run tests with pytest
    pytest.main([__file__, "-v"])

"""
Tests for parsing the scan service payloads.
"""

import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from scanreport.types import AiDetectionResult, CrawledVersion, ReportJob, ReportStatus, ScanResult


class TestScanResult:
    def test_reads_camel_case_payload(self, scan_payload):
        scan = ScanResult.model_validate(scan_payload)

        assert scan.scanned_document.metadata.filename == 'essay.docx'
        assert scan.scanned_document.total_words == 120
        assert scan.scanned_document.total_excluded == 7
        assert scan.score.aggregated_score == 42.5
        assert scan.score.related_meaning_words == 11

    def test_creation_time_from_epoch_milliseconds(self, scan_payload):
        scan = ScanResult.model_validate(scan_payload)
        assert scan.scanned_document.creation_time == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_creation_time_from_iso_string(self, scan_payload):
        scan_payload['scannedDocument']['creationTime'] = '2024-02-01T10:00:00Z'
        scan = ScanResult.model_validate(scan_payload)
        assert scan.scanned_document.creation_time.year == 2024

    def test_nulls_fall_back_to_defaults(self):
        scan = ScanResult.model_validate({'scannedDocument': None, 'results': {'score': {'identicalWords': None}}})
        assert scan.scanned_document.metadata.filename == ''
        assert scan.score.identical_words == 0

    def test_wrong_type_is_rejected(self, scan_payload):
        scan_payload['results']['score']['aggregatedScore'] = 'lots'
        with pytest.raises(ValidationError):
            ScanResult.model_validate(scan_payload)


class TestAiDetectionResult:
    def test_spans_follow_parallel_arrays(self, ai_payload):
        ai = AiDetectionResult.model_validate(ai_payload)
        spans = ai.spans()

        assert [(span.start, span.length) for span in spans] == [(0, 3), (5, 2)]
        assert spans[0].ai_count == 12.0
        assert spans[1].human_count == 1.0
        assert ai.total_word_count == 10

    def test_missing_results_give_zero_total(self, ai_payload):
        ai_payload['results'] = []
        ai = AiDetectionResult.model_validate(ai_payload)
        assert ai.total_word_count == 0

    def test_mismatched_arrays_are_truncated(self, ai_payload, caplog):
        ai_payload['explain']['patterns']['statistics']['humanCount'] = [2.0]
        ai = AiDetectionResult.model_validate(ai_payload)

        with caplog.at_level(logging.WARNING):
            spans = ai.spans()

        assert len(spans) == 1
        assert 'differ in length' in caplog.text

    def test_crawled_text(self, crawled_payload):
        crawled = CrawledVersion.model_validate(crawled_payload)
        assert crawled.text.value.startswith('the quick')


def test_report_job_round_trips_through_json():
    job = ReportJob(user_id='u', scan_id='s', status=ReportStatus.annotating, warnings=['a: b'])
    restored = ReportJob.model_validate(job.model_dump(mode='json'))

    assert restored.status == ReportStatus.annotating
    assert restored.warnings == ['a: b']
    assert restored.artifacts.final_report_path is None

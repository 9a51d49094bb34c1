from __future__ import annotations

import logging
import traceback
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .assets import BANNER, CERTIFICATE, AssetRegistry, DirectoryAssetRegistry
from .config import Settings, get_settings
from .errors import AnnotationError, InputParseError, MergeError, MissingInputError, ReportError
from .report.ai_analysis import build_ai_report
from .report.annotate import annotate_existing_pdf
from .report.canvas import ReportCanvas
from .report.cover_page import build_cover_page
from .report.merge import merge_pdfs
from .report.plagiarism_page import build_plagiarism_page
from .state import add_warning, fail_report, load_report_state, mutate_report_state, save_report_state, set_status
from .storage import (
    AI_RESULT_FILE,
    CRAWLED_VERSION_FILE,
    FINAL_REPORT_FILE,
    HEADER_ADDED_FILE,
    PART1_FILE,
    PART2_FILE,
    PLAG_FILE,
    PLAGIARISM_REPORT_FILE,
    SCAN_RESULTS_FILE,
    append_event,
    read_input_bytes,
    read_input_json,
    report_dir,
    write_bytes_atomic,
)
from .types import AiDetectionResult, CrawledVersion, ReportJob, ReportStatus, ScanResult


logger = logging.getLogger(__name__)


def _validate(model: Any, payload: dict[str, Any], name: str, stage: str):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InputParseError(f'{name} does not match the expected schema: {exc}', stage=stage) from exc


def load_scan_result(folder: Path) -> ScanResult:
    stage = ReportStatus.building_plagiarism.value
    payload = read_input_json(folder / SCAN_RESULTS_FILE, stage=stage)
    return _validate(ScanResult, payload, SCAN_RESULTS_FILE, stage)


def load_ai_inputs(folder: Path) -> tuple[AiDetectionResult, CrawledVersion]:
    stage = ReportStatus.building_ai.value
    ai_payload = read_input_json(folder / AI_RESULT_FILE, stage=stage)
    crawled_payload = read_input_json(folder / CRAWLED_VERSION_FILE, stage=stage)
    return (
        _validate(AiDetectionResult, ai_payload, AI_RESULT_FILE, stage),
        _validate(CrawledVersion, crawled_payload, CRAWLED_VERSION_FILE, stage),
    )


def build_plagiarism_section(scan: ScanResult, assets: AssetRegistry, settings: Settings) -> bytes:
    canvas = ReportCanvas(title='Analysis Report', author=settings.organisation_name)
    build_cover_page(canvas, scan, assets, settings)
    build_plagiarism_page(canvas, scan, assets, settings)
    return canvas.to_bytes()


def build_ai_section(
    ai: AiDetectionResult,
    crawled: CrawledVersion,
    assets: AssetRegistry,
    settings: Settings,
) -> bytes:
    canvas = ReportCanvas(title='AI Content', author=settings.organisation_name)
    build_ai_report(canvas, ai, crawled, assets, settings)
    return canvas.to_bytes()


class ReportPipeline:
    """Builds ``MergedFinalReport.pdf`` for one scan folder.

    Stages run strictly in order and hand off PDF bytes. Annotating the
    exported plagiarism report and the first merge degrade to a warning; any
    other failure marks the run as failed and leaves no final report.
    """

    def __init__(
        self,
        folder: Path,
        *,
        user_id: str,
        scan_id: str,
        settings: Settings | None = None,
        assets: AssetRegistry | None = None,
    ):
        self.folder = Path(folder)
        self.user_id = str(user_id)
        self.scan_id = str(scan_id)
        self.settings = settings or get_settings()
        self.assets = assets or DirectoryAssetRegistry(self.settings.assets_dir)

    def _write(self, name: str, content: bytes, artifact: str) -> Path:
        path = self.folder / name
        write_bytes_atomic(path, content)

        def apply(job: ReportJob) -> None:
            setattr(job.artifacts, artifact, str(path))

        mutate_report_state(self.folder, apply)
        append_event(self.folder, 'artifact_written', name=name, size=len(content))
        return path

    def _stage(self, status: ReportStatus, message: str) -> None:
        logger.info('[%s/%s] %s', self.user_id, self.scan_id, message)
        set_status(self.folder, status, message)

    def _plagiarism_part(self) -> bytes:
        self._stage(ReportStatus.building_plagiarism, 'Building cover and plagiarism pages.')
        scan = load_scan_result(self.folder)
        part1 = build_plagiarism_section(scan, self.assets, self.settings)
        self._write(PART1_FILE, part1, 'part1_path')
        return part1

    def _annotated_export(self) -> bytes:
        self._stage(ReportStatus.annotating, 'Adding header, footer and QR code to the exported report.')
        exported = read_input_bytes(self.folder / PLAGIARISM_REPORT_FILE, stage=ReportStatus.annotating.value)
        try:
            annotated = annotate_existing_pdf(
                exported,
                header_image=self.assets.load_asset(BANNER),
                footer_image=self.assets.load_asset(CERTIFICATE),
                footer_link=self.settings.footer_link,
                identifier=self.scan_id,
                settings=self.settings,
            )
        except AnnotationError as exc:
            logger.error('Error adding header to PDF: %s', exc.message)
            add_warning(self.folder, ReportStatus.annotating.value, exc.message)
            return exported
        self._write(HEADER_ADDED_FILE, annotated, 'header_added_path')
        return annotated

    def _merged_plagiarism(self, part1: bytes, exported: bytes) -> bytes:
        self._stage(ReportStatus.merging_plagiarism, 'Merging generated pages with the exported report.')
        try:
            plag = merge_pdfs(part1, exported, skip_first_page=True)
        except MergeError as exc:
            logger.error('Error merging PDFs: %s', exc.message)
            add_warning(self.folder, ReportStatus.merging_plagiarism.value, exc.message)
            plag = part1
        self._write(PLAG_FILE, plag, 'plag_path')
        return plag

    def _ai_part(self) -> bytes:
        self._stage(ReportStatus.building_ai, 'Building AI detection pages.')
        ai, crawled = load_ai_inputs(self.folder)
        part2 = build_ai_section(ai, crawled, self.assets, self.settings)
        self._write(PART2_FILE, part2, 'part2_path')
        return part2

    def _final_merge(self, plag: bytes, part2: bytes) -> Path:
        self._stage(ReportStatus.merging_final, 'Merging plagiarism and AI sections.')
        final_bytes = merge_pdfs(plag, part2, skip_first_page=False)
        return self._write(FINAL_REPORT_FILE, final_bytes, 'final_report_path')

    def run(self) -> ReportJob:
        job = load_report_state(self.folder)
        if job is None:
            job = ReportJob(user_id=self.user_id, scan_id=self.scan_id)
        job.status = ReportStatus.queued
        job.message = 'Report queued.'
        job.error = None
        job.failed_stage = None
        job.error_code = None
        job.warnings = []
        job.artifacts.final_report_path = None
        save_report_state(self.folder, job)
        # a stale final report from an earlier run must not survive a failed one
        (self.folder / FINAL_REPORT_FILE).unlink(missing_ok=True)

        stage = ReportStatus.queued.value
        try:
            stage = ReportStatus.building_plagiarism.value
            part1 = self._plagiarism_part()
            stage = ReportStatus.annotating.value
            exported = self._annotated_export()
            stage = ReportStatus.merging_plagiarism.value
            plag = self._merged_plagiarism(part1, exported)
            stage = ReportStatus.building_ai.value
            part2 = self._ai_part()
            stage = ReportStatus.merging_final.value
            final_path = self._final_merge(plag, part2)
        except ReportError as exc:
            failed_stage = exc.stage or stage
            logger.error('Report generation failed at %s: %s', failed_stage, exc.message)
            fail_report(self.folder, stage=failed_stage, message=f'Report generation failed at {failed_stage}.', error=exc.message)
            return mutate_report_state(self.folder, lambda state: setattr(state, 'error_code', exc.code))
        except Exception as exc:
            detail = f'{type(exc).__name__}: {exc}\n{traceback.format_exc()}'
            logger.exception('Unexpected error while generating report at %s', stage)
            fail_report(self.folder, stage=stage, message='Server error while generating report.', error=detail)
            return mutate_report_state(self.folder, lambda state: setattr(state, 'error_code', 500))

        logger.info('Report saved as %s', final_path)
        job = set_status(self.folder, ReportStatus.completed, 'Report generated successfully!')
        append_event(self.folder, 'completed', final_report=str(final_path))
        return job


def generate_report(
    user_id: str,
    scan_id: str,
    *,
    settings: Settings | None = None,
    assets: AssetRegistry | None = None,
) -> ReportJob:
    settings = settings or get_settings()
    try:
        folder = report_dir(user_id, scan_id, root=settings.reports_dir)
    except ValueError as exc:
        raise MissingInputError(str(exc), stage=ReportStatus.queued.value) from exc
    if not folder.is_dir():
        raise MissingInputError(f'Report folder not found: {folder}', stage=ReportStatus.queued.value)
    pipeline = ReportPipeline(folder, user_id=user_id, scan_id=scan_id, settings=settings, assets=assets)
    return pipeline.run()

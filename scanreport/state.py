from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .storage import append_event, read_json, state_path, write_json_atomic
from .types import ReportJob, ReportStatus


_STATE_LOCK = threading.RLock()


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def save_report_state(folder: Path, job: ReportJob) -> ReportJob:
    with _STATE_LOCK:
        job.updated_at = now_utc()
        write_json_atomic(state_path(folder), job.model_dump(mode='json'))
    return job


def load_report_state(folder: Path) -> ReportJob | None:
    path = state_path(folder)
    if not path.exists():
        return None
    with _STATE_LOCK:
        payload = read_json(path)
    return ReportJob.model_validate(payload)


def mutate_report_state(folder: Path, fn: Callable[[ReportJob], None]) -> ReportJob:
    with _STATE_LOCK:
        existing = load_report_state(folder)
        if existing is None:
            raise FileNotFoundError(f'Report state not found: {folder}')
        fn(existing)
        existing.updated_at = now_utc()
        write_json_atomic(state_path(folder), existing.model_dump(mode='json'))
    return existing


def update_report_state(folder: Path, **fields: Any) -> ReportJob:
    def apply(job: ReportJob) -> None:
        for key, value in fields.items():
            setattr(job, key, value)

    return mutate_report_state(folder, apply)


def set_status(folder: Path, status: ReportStatus, message: str) -> ReportJob:
    job = update_report_state(folder, status=status, message=message)
    append_event(folder, 'status', status=status.value, message=message)
    return job


def add_warning(folder: Path, stage: str, message: str) -> ReportJob:
    def apply(job: ReportJob) -> None:
        job.warnings.append(f'{stage}: {message}')

    job = mutate_report_state(folder, apply)
    append_event(folder, 'stage_skipped', stage=stage, message=message)
    return job


def fail_report(folder: Path, *, stage: str, message: str, error: str) -> ReportJob:
    job = update_report_state(
        folder,
        status=ReportStatus.failed,
        message=message,
        error=error,
        failed_stage=stage,
    )
    append_event(folder, 'failed', stage=stage, message=message, error=error)
    return job

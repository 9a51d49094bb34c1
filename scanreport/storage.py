from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import get_settings
from .errors import InputParseError, MissingInputError


SCAN_RESULTS_FILE = 'scan_results.json'
AI_RESULT_FILE = 'ai_result.json'
CRAWLED_VERSION_FILE = 'crawled_version.json'
PLAGIARISM_REPORT_FILE = 'plagiarism_report.pdf'

PART1_FILE = 'part1.pdf'
HEADER_ADDED_FILE = 'header_added.pdf'
PLAG_FILE = 'plag.pdf'
PART2_FILE = 'part2.pdf'
FINAL_REPORT_FILE = 'MergedFinalReport.pdf'

REQUIRED_INPUT_FILES = (
    SCAN_RESULTS_FILE,
    PLAGIARISM_REPORT_FILE,
    AI_RESULT_FILE,
    CRAWLED_VERSION_FILE,
)

_SAFE_ID_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


def reports_root() -> Path:
    root = get_settings().reports_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def _safe_id(value: Any, label: str) -> str:
    token = str(value if value is not None else '').strip()
    if not token:
        raise ValueError(f'{label} is required')
    if token in {'.', '..'} or not _SAFE_ID_PATTERN.match(token):
        raise ValueError(f'invalid {label}: {value}')
    return token


def report_dir(user_id: Any, scan_id: Any, *, root: Path | None = None, create: bool = False) -> Path:
    base = Path(root) if root is not None else reports_root()
    path = base / _safe_id(user_id, 'user_id') / _safe_id(scan_id, 'scan_id')
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def state_path(folder: Path) -> Path:
    return folder / 'report.json'


def events_path(folder: Path) -> Path:
    return folder / 'events.jsonl'


def missing_files(folder: Path, names: tuple[str, ...] = REQUIRED_INPUT_FILES) -> list[str]:
    return [name for name in names if not (folder / name).is_file()]


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
    tmp.replace(path)


def write_bytes_atomic(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(content)
    tmp.replace(path)


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding='utf-8'))


def read_input_json(path: Path, *, stage: str | None = None) -> dict[str, Any]:
    if not path.is_file():
        raise MissingInputError(f'{path.name} not found in folder', stage=stage)
    try:
        payload = read_json(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InputParseError(f'{path.name} is not valid JSON: {exc}', stage=stage) from exc
    if not isinstance(payload, dict):
        raise InputParseError(f'{path.name} must contain a JSON object', stage=stage)
    return payload


def read_input_bytes(path: Path, *, stage: str | None = None) -> bytes:
    if not path.is_file():
        raise MissingInputError(f'{path.name} not found in folder', stage=stage)
    return path.read_bytes()


def append_event(folder: Path, event: str, **extra: Any) -> None:
    now = datetime.now(timezone.utc).isoformat()
    row = {
        'ts': now,
        'event': event,
        **extra,
    }
    events_file = events_path(folder)
    events_file.parent.mkdir(parents=True, exist_ok=True)
    with events_file.open('a', encoding='utf-8') as f:
        f.write(json.dumps(row, ensure_ascii=False) + '\n')

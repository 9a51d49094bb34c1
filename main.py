from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from scanreport.adapters.report_service import ReportServiceClient, ReportServiceConfig, wait_for_files
from scanreport.config import get_settings
from scanreport.errors import MissingInputError
from scanreport.pipeline import generate_report
from scanreport.state import load_report_state
from scanreport.storage import report_dir
from scanreport.types import ReportJob, ReportStatus


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _status_snapshot(job: ReportJob) -> dict:
    return {
        'user_id': job.user_id,
        'scan_id': job.scan_id,
        'status': job.status.value,
        'message': job.message,
        'error': job.error,
        'failed_stage': job.failed_stage,
        'code': job.error_code,
        'warnings': job.warnings,
        'created_at': job.created_at.isoformat(),
        'updated_at': job.updated_at.isoformat(),
        'artifacts': job.artifacts.model_dump(mode='json'),
    }


def _build_service_client() -> ReportServiceClient:
    settings = get_settings()
    return ReportServiceClient(
        ReportServiceConfig(
            base_url=settings.service_base_url,
            api_key=settings.service_api_key,
            generate_endpoint=settings.service_generate_endpoint,
            timeout_seconds=settings.service_timeout_seconds,
        )
    )


def cmd_generate(args: argparse.Namespace) -> int:
    try:
        job = generate_report(args.user_id, args.scan_id)
    except MissingInputError as exc:
        _print_json({'status': 'error', 'stage': exc.stage, 'code': exc.code, 'error': exc.message})
        return 2

    if job.status == ReportStatus.completed:
        _print_json({'status': 'ok', 'message': job.message, 'report': job.artifacts.final_report_path, 'warnings': job.warnings})
        return 0

    _print_json(
        {
            'status': 'error',
            'stage': job.failed_stage,
            'code': job.error_code,
            'error': job.error,
            'message': job.message,
        }
    )
    return 2 if job.error_code == MissingInputError.code else 1


def _scan_folder(args: argparse.Namespace) -> Path | None:
    try:
        return report_dir(args.user_id, args.scan_id, root=get_settings().reports_dir)
    except ValueError as exc:
        _print_json({'status': 'error', 'code': MissingInputError.code, 'error': str(exc)})
        return None


def cmd_status(args: argparse.Namespace) -> int:
    folder = _scan_folder(args)
    if folder is None:
        return 2
    job = load_report_state(folder)
    if job is None:
        _print_json({'status': 'error', 'message': f'No report state in {folder}'})
        return 2
    _print_json(_status_snapshot(job))
    return 0


def cmd_wait(args: argparse.Namespace) -> int:
    folder = _scan_folder(args)
    if folder is None:
        return 2
    settings = get_settings()
    timeout = args.timeout if args.timeout is not None else settings.wait_timeout_seconds
    result = asyncio.run(
        wait_for_files(
            folder,
            poll_interval_seconds=settings.wait_poll_interval_seconds,
            timeout_seconds=timeout,
        )
    )
    _print_json({'ready': result.ready, 'missing': result.missing, 'waited_seconds': round(result.waited_seconds, 2)})
    return 0 if result.ready else 1


def cmd_trigger(args: argparse.Namespace) -> int:
    result = asyncio.run(_build_service_client().trigger_generation(args.user_id, args.scan_id))
    _print_json({'ok': result.ok, 'status_code': result.status_code, 'payload': result.payload, 'error': result.error})
    return 0 if result.ok else 1


def _add_ids(command: argparse.ArgumentParser) -> None:
    command.add_argument('--user-id', required=True, help='User ID (first folder level)')
    command.add_argument('--scan-id', required=True, help='Scan ID (second folder level)')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=f'{get_settings().app_name} CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    generate = sub.add_parser('generate', help='Build MergedFinalReport.pdf for a scan')
    _add_ids(generate)
    generate.set_defaults(func=cmd_generate)

    status = sub.add_parser('status', help='Show the last report run for a scan')
    _add_ids(status)
    status.set_defaults(func=cmd_status)

    wait = sub.add_parser('wait', help='Wait until all scan inputs are present')
    _add_ids(wait)
    wait.add_argument('--timeout', type=float, required=False, help='Give up after this many seconds')
    wait.set_defaults(func=cmd_wait)

    trigger = sub.add_parser('trigger', help='Ask the scan service to generate the report')
    _add_ids(trigger)
    trigger.set_defaults(func=cmd_trigger)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())

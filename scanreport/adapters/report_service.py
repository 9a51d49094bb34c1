from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from ..storage import REQUIRED_INPUT_FILES, missing_files


logger = logging.getLogger(__name__)


@dataclass
class ReportServiceConfig:
    base_url: str | None
    api_key: str | None
    generate_endpoint: str
    timeout_seconds: int


@dataclass
class TriggerResult:
    ok: bool
    status_code: int | None = None
    payload: Any = None
    error: str | None = None


@dataclass
class WaitResult:
    ready: bool
    missing: list[str] = field(default_factory=list)
    waited_seconds: float = 0.0


class ReportServiceClient:
    """Client for the upstream scan service that kicks off report generation."""

    def __init__(self, cfg: ReportServiceConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.cfg.base_url)

    def _url(self, user_id: str, scan_id: str) -> str:
        assert self.cfg.base_url is not None
        endpoint = self.cfg.generate_endpoint.format(user_id=user_id, scan_id=scan_id)
        return f"{self.cfg.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    async def trigger_generation(self, user_id: str, scan_id: str) -> TriggerResult:
        if not self.configured:
            return TriggerResult(ok=False, error='report service base URL is not configured')

        headers = {'Content-Type': 'application/json'}
        api_key = str(self.cfg.api_key or '').strip()
        if api_key:
            headers['Authorization'] = f'Bearer {api_key}'

        url = self._url(user_id, scan_id)
        try:
            async with httpx.AsyncClient(
                timeout=max(5, int(self.cfg.timeout_seconds)),
                transport=self._transport,
            ) as client:
                response = await client.post(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error('Report generation request failed with %s: %s', exc.response.status_code, url)
            return TriggerResult(ok=False, status_code=exc.response.status_code, error=str(exc))
        except httpx.HTTPError as exc:
            logger.error('Error generating report via %s: %s', url, exc)
            return TriggerResult(ok=False, error=f'{type(exc).__name__}: {exc}')

        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        logger.info('Generate report response: %s', payload)
        return TriggerResult(ok=True, status_code=response.status_code, payload=payload)


async def wait_for_files(
    folder: Path,
    required: tuple[str, ...] = REQUIRED_INPUT_FILES,
    *,
    poll_interval_seconds: float = 1.0,
    timeout_seconds: float | None = None,
) -> WaitResult:
    """Poll ``folder`` until every required file exists (or the timeout elapses)."""
    started = time.monotonic()
    interval = max(0.05, float(poll_interval_seconds))
    while True:
        missing = missing_files(folder, required)
        waited = time.monotonic() - started
        if not missing:
            return WaitResult(ready=True, waited_seconds=waited)
        if timeout_seconds is not None and waited >= timeout_seconds:
            logger.warning('Timed out after %.1fs waiting for %s in %s', waited, missing, folder)
            return WaitResult(ready=False, missing=missing, waited_seconds=waited)
        await asyncio.sleep(interval)

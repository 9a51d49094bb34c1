from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Mapping, Protocol


logger = logging.getLogger(__name__)

BANNER = 'banner'
CERTIFICATE = 'footerbanner'
CATEGORY_ICONS = ('database', 'internal_database', 'filter', 'internet', 'batch')


class AssetRegistry(Protocol):
    def load_asset(self, name: str) -> bytes:
        """Return the raw image bytes for ``name``, or ``b''`` when unavailable."""
        ...


def decode_base64_asset(text: str) -> bytes:
    payload = text.strip()
    if payload.startswith('data:') and ',' in payload:
        payload = payload.split(',', 1)[1]
    payload = ''.join(payload.split())
    if not payload:
        return b''
    return base64.b64decode(payload, validate=False)


class DirectoryAssetRegistry:
    """Assets stored on disk as ``<name>.png`` or base64 text in ``<name>_base64.txt``."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._cache: dict[str, bytes] = {}

    def _candidates(self, name: str) -> list[Path]:
        return [
            self.root / f'{name}.png',
            self.root / f'{name}_base64.txt',
        ]

    def load_asset(self, name: str) -> bytes:
        if name in self._cache:
            return self._cache[name]

        data = b''
        for candidate in self._candidates(name):
            if not candidate.is_file():
                continue
            try:
                if candidate.suffix == '.txt':
                    data = decode_base64_asset(candidate.read_text(encoding='utf-8'))
                else:
                    data = candidate.read_bytes()
            except (OSError, UnicodeDecodeError, binascii.Error, ValueError) as exc:
                logger.warning('Failed to read asset %s from %s: %s', name, candidate, exc)
                continue
            if data:
                break

        if not data:
            logger.warning('Asset %s not found under %s', name, self.root)
        self._cache[name] = data
        return data


class InMemoryAssetRegistry:
    def __init__(self, assets: Mapping[str, bytes] | None = None):
        self._assets = dict(assets or {})

    def load_asset(self, name: str) -> bytes:
        data = self._assets.get(name, b'')
        if not data:
            logger.debug('Asset %s not registered', name)
        return data

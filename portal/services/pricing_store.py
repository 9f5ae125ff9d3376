"""
File-backed storage for the pricing forest.

The whole forest lives in one JSON array.  Reads never fail: a missing
or unreadable document falls back to the built-in catalog.  Saves
replace the document atomically (temp file + ``os.replace``) and there
is no merge; the last writer wins unless the caller passes the version
it started from, in which case a stale write is rejected.
"""
from __future__ import annotations

import copy
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from django.conf import settings

from portal.exceptions import ConflictError, PersistenceError
from portal.services.defaults import DEFAULT_PRICING
from portal.services.pricing_tree import PricingItem, stamp_timestamps, validate_forest

logger = logging.getLogger(__name__)


def _digest(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()[:32]


class PricingStore:
    """Repository over a single pricing document.

    ``seed`` is the forest served while nothing has been persisted yet;
    it defaults to the built-in catalog.
    """

    def __init__(self, path, seed: Optional[List[PricingItem]] = None):
        self.path = Path(path)
        self._seed = DEFAULT_PRICING if seed is None else seed

    def _fallback(self) -> List[PricingItem]:
        return copy.deepcopy(self._seed)

    def load(self) -> List[PricingItem]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.info('No pricing document at %s, serving default catalog', self.path)
            return self._fallback()
        except OSError as exc:
            logger.warning('Could not read pricing document %s: %s', self.path, exc)
            return self._fallback()
        try:
            data = json.loads(raw.decode('utf-8'))
        except ValueError as exc:
            logger.warning('Pricing document %s is not valid JSON: %s', self.path, exc)
            return self._fallback()
        if not isinstance(data, list):
            logger.warning('Pricing document %s does not hold an array, serving default catalog', self.path)
            return self._fallback()
        return data

    def version(self) -> Optional[str]:
        """Content hash of the persisted document, ``None`` if there is none."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError() from exc
        return _digest(raw)

    def save(self, items, expected_version: Optional[str] = None) -> List[PricingItem]:
        validate_forest(items)
        if expected_version is not None and expected_version != self.version():
            raise ConflictError()

        forest = stamp_timestamps(copy.deepcopy(items))
        payload = json.dumps(forest, ensure_ascii=False, indent=2).encode('utf-8')
        try:
            self._write(payload)
        except OSError as exc:
            raise PersistenceError() from exc
        logger.info('Saved %d pricing services to %s', len(forest), self.path)
        return forest

    def _write(self, payload: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix='.pricing-', suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


def get_pricing_store() -> PricingStore:
    """Store configured by ``settings.PRICING_DATA_PATH``.

    A relative path resolves against the working directory of the
    running process.
    """
    return PricingStore(settings.PRICING_DATA_PATH)

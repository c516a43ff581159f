"""
JSON file key/value store.

One ``<key>.json`` document per collection under the data directory. Writes
go to a temp file and are moved into place with ``os.replace``. Inside a
``batch()`` block saves are buffered and committed together on exit, after
the quota has been checked for the whole batch.
"""

import errno
import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from lanlearner.domain.constants import DEFAULT_STORAGE_QUOTA_BYTES
from lanlearner.domain.errors import StorageQuotaExceeded
from lanlearner.domain.interfaces import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    def __init__(self, data_dir: Path, quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES):
        self.data_dir = Path(data_dir)
        self.quota_bytes = quota_bytes
        self._pending: dict[str, bytes] | None = None
        self._depth = 0

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def usage_bytes(self, exclude: set[str] | frozenset[str] = frozenset()) -> int:
        if not self.data_dir.exists():
            return 0
        return sum(
            p.stat().st_size for p in self.data_dir.glob("*.json") if p.stem not in exclude
        )

    def load(self, key: str, default: Any) -> Any:
        if self._pending is not None and key in self._pending:
            return json.loads(self._pending[key])

        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read '{key}' from {path}: {e}")
            return default

    def save(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False, indent=2).encode("utf-8")
        if self._pending is not None:
            self._pending[key] = payload
            return
        self._commit({key: payload})

    @contextmanager
    def batch(self) -> Iterator[None]:
        # Nested batches fold into the outermost one
        outermost = self._depth == 0
        if outermost:
            self._pending = {}
        self._depth += 1
        try:
            yield
        except BaseException:
            if outermost:
                self._pending = None
            raise
        finally:
            self._depth -= 1

        if outermost:
            pending, self._pending = self._pending, None
            if pending:
                self._commit(pending)

    def _commit(self, payloads: dict[str, bytes]) -> None:
        required = self.usage_bytes(exclude=set(payloads)) + sum(len(p) for p in payloads.values())
        if required > self.quota_bytes:
            key = max(payloads, key=lambda k: len(payloads[k]))
            raise StorageQuotaExceeded(key, required, self.quota_bytes)

        written: list[tuple[Path, Path]] = []
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for key, payload in payloads.items():
                path = self.path_for(key)
                tmp = path.with_suffix(".json.tmp")
                written.append((tmp, path))
                with open(tmp, "wb") as f:
                    f.write(payload)
        except OSError as e:
            for tmp, _ in written:
                tmp.unlink(missing_ok=True)
            if e.errno == errno.ENOSPC:
                raise StorageQuotaExceeded(", ".join(payloads), required, self.quota_bytes) from e
            logger.error(f"Failed to write {', '.join(payloads)}: {e}")
            return

        for tmp, path in written:
            os.replace(tmp, path)
        logger.debug(f"Committed {', '.join(payloads)} ({required} bytes in use)")

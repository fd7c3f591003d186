from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import Dict

from bf2wasm.generator import CellAddressing


@dataclass
class ArtifactRecord:
    artifact_id: str
    code: str
    addressing: CellAddressing
    body: str
    module: str
    label_count: int

    @property
    def loop_count(self) -> int:
        return self.label_count // 2


class ArtifactStore:
    """Thread-safe registry of compiled modules."""

    def __init__(self) -> None:
        self._records: Dict[str, ArtifactRecord] = {}
        self._lock = threading.RLock()

    def add(
        self,
        *,
        code: str,
        addressing: CellAddressing,
        body: str,
        module: str,
        label_count: int,
    ) -> ArtifactRecord:
        record = ArtifactRecord(
            artifact_id=uuid.uuid4().hex,
            code=code,
            addressing=addressing,
            body=body,
            module=module,
            label_count=label_count,
        )
        with self._lock:
            self._records[record.artifact_id] = record
        return record

    def get(self, artifact_id: str) -> ArtifactRecord:
        with self._lock:
            try:
                return self._records[artifact_id]
            except KeyError as exc:
                raise KeyError(f"Unknown artifact id: {artifact_id}") from exc

    def remove(self, artifact_id: str) -> bool:
        with self._lock:
            return self._records.pop(artifact_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["ArtifactRecord", "ArtifactStore"]

"""One-JSON-file-per-record storage for workstreams and trashed workstreams."""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordStore(Generic[RecordT]):
    """Directory of ``<id>.json`` files, each holding one whole serialized record.

    Writes replace the whole file through a temporary sibling and ``os.replace``.
    Nothing is fsynced, so a completed write is not guaranteed to survive power loss.
    """

    def __init__(self, directory: Path, model: Type[RecordT]):
        self._dir = directory
        self._model = model

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, record_id: str) -> Path:
        return self._dir / f"{record_id}.json"

    def ensure_dir(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)

    def load_all(self) -> Dict[str, RecordT]:
        """Read every record in the directory.

        Unreadable or invalid files are logged and skipped; the store behaves as
        if they did not exist.

        Returns:
            Mapping of record id to record
        """
        records: Dict[str, RecordT] = {}
        if not self._dir.exists():
            return records

        for path in sorted(self._dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                record = self._model.model_validate(data)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping unreadable record %s: %s", path, e)
                continue
            records[record.id] = record
        return records

    def save(self, record: RecordT) -> Path:
        """Write a record, replacing any previous copy.

        Returns:
            Path of the written file

        Raises:
            OSError: If the file cannot be written
        """
        self.ensure_dir()
        path = self.path_for(record.id)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(str(tmp), str(path))
        return path

    def delete(self, record_id: str) -> bool:
        """Remove a record's file.

        Returns:
            True if a file was removed, False if there was none
        """
        try:
            self.path_for(record_id).unlink()
            return True
        except FileNotFoundError:
            return False

    def exists(self, record_id: str) -> bool:
        return self.path_for(record_id).exists()

"""JSON-file-backed remote store - one file per collection or document."""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from src.auction_draft.config import STORE_DIR
from src.auction_draft.remote_store import InMemoryStore, StoreError
from src.auction_draft.scheduler import Scheduler

logger = logging.getLogger(__name__)


class JsonFileStore(InMemoryStore):
    """Store that mirrors every mutation to JSON files on disk.

    Collections are saved as ``collection_<name>.json`` holding a list of
    records; documents as ``document_<path>.json`` with ``/`` replaced by
    ``_``. Existing files are loaded at construction.
    """

    def __init__(
        self,
        storage_dir: Optional[Path] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        super().__init__(scheduler=scheduler)
        self.storage_dir = storage_dir or STORE_DIR
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._load()

    # ------------------------------------------------------------------
    # File layout
    # ------------------------------------------------------------------
    def collection_file(self, collection: str) -> Path:
        return self.storage_dir / f"collection_{collection}.json"

    def document_file(self, path: str) -> Path:
        return self.storage_dir / f"document_{path.replace('/', '_')}.json"

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------
    def _load(self):
        for filepath in sorted(self.storage_dir.glob("collection_*.json")):
            collection = filepath.stem[len("collection_"):]
            data = self._read_json(filepath)
            if data is None:
                continue
            try:
                self._collections[collection] = {
                    int(record["id"]): record for record in data["records"]
                }
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed collection file %s: %s", filepath, e)
                continue
            logger.info(
                "Loaded %d %s records from %s",
                len(self._collections[collection]),
                collection,
                filepath,
            )

        for filepath in sorted(self.storage_dir.glob("document_*.json")):
            data = self._read_json(filepath)
            if data is None:
                continue
            try:
                self._documents[data["path"]] = data["record"]
            except (KeyError, TypeError) as e:
                logger.warning("Skipping malformed document file %s: %s", filepath, e)

    @staticmethod
    def _read_json(filepath: Path) -> Optional[Dict]:
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Corrupt store file %s: %s", filepath, e)
            return None

    def _write_json(self, filepath: Path, payload: Dict):
        try:
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            raise StoreError(f"Could not write {filepath}: {e}") from e

    def _after_collection_write(self, collection: str):
        records = self._collections.get(collection, {})
        self._write_json(
            self.collection_file(collection),
            {"collection": collection, "records": [records[k] for k in sorted(records)]},
        )
        super()._after_collection_write(collection)

    def _after_document_write(self, path: str):
        self._write_json(
            self.document_file(path),
            {"path": path, "record": self._documents[path]},
        )
        super()._after_document_write(path)

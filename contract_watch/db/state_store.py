"""
JSON State Store
================

Persistence for the monitor's single document.

Storage: one pretty-printed JSON file (default previous_data.json), read
once at the start of a run and overwritten wholesale at most once at the
end. Writes go through a temporary file in the same directory followed by
os.replace, so readers never see a half-written document.

Concurrent runs against the same file are not coordinated here: the
scheduler is expected to serialize invocations (last writer wins
otherwise).
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import PersistenceReadError, PersistenceWriteError
from ..models import PersistedDocument

logger = logging.getLogger(__name__)


def serialize(document: PersistedDocument) -> str:
    """Serialize a document exactly as it is written to disk."""
    return json.dumps(document.to_dict(), indent=2) + "\n"


class StateStore:
    """File-backed storage for the PersistedDocument."""

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read_raw(self) -> Optional[str]:
        """Stored text, or None if there is no document."""
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def load(self) -> Optional[PersistedDocument]:
        """
        Load the stored document.

        Returns:
            PersistedDocument, or None if no document has been written yet

        Raises:
            PersistenceReadError: If the file exists but cannot be read or parsed
        """
        try:
            raw = self.read_raw()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Cannot read {self.path}: {e}") from e

        if raw is None:
            logger.info(f"No previous data at {self.path}, starting fresh")
            return None

        try:
            document = PersistedDocument.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            raise PersistenceReadError(f"Corrupt document at {self.path}: {e}") from e

        logger.debug(f"Loaded document from {self.path}")
        return document

    def save(self, document: PersistedDocument):
        """
        Write the document, replacing any previous content.

        Raises:
            PersistenceWriteError: If the file cannot be written
        """
        text = serialize(document)
        directory = self.path.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(directory))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceWriteError(f"Failed to save {self.path}: {e}") from e

        logger.info(f"Saved state to {self.path}")

    def reset(self) -> bool:
        """
        Delete the stored document so the next run establishes a new baseline.

        Returns:
            True if a document was removed
        """
        if not self.path.exists():
            return False
        self.path.unlink()
        logger.info(f"Removed stored document {self.path}")
        return True

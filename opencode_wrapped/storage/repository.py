"""
Repository pattern for data access.

Reads session, message and project records from the OpenCode storage
directory. Files are read in parallel and the results sorted so that
downstream aggregation sees a deterministic order.
"""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, List, Optional

from loguru import logger

from opencode_wrapped.core.dates import year_of
from .models import MessageRecord, ProjectRecord, SessionRecord
from .validation import ParseResult, parse_file, parse_message, parse_project, parse_session

SESSION_DIR = "session"
MESSAGE_DIR = "message"
PROJECT_DIR = "project"

DEFAULT_MAX_WORKERS = 8


class CorpusNotFoundError(Exception):
    """Raised when the storage root directory cannot be enumerated."""
    def __init__(self, path: Path, reason: str = ""):
        message = f"OpenCode data not found at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


def default_storage_path() -> Path:
    """Return the platform data directory used by OpenCode.

    Honours ``XDG_DATA_HOME`` and falls back to ``~/.local/share``.
    """
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / "opencode" / "storage"


class CorpusRepository:
    """Read-only access to the OpenCode JSON storage tree.

    Layout under the root::

        session/<project id>/<session id>.json
        message/<session id>/<message id>.json
        project/<project id>.json

    Malformed files and unreadable sub-directories are skipped. Only a
    missing or unreadable root raises CorpusNotFoundError.
    """

    def __init__(self, storage_path: Optional[Path] = None, max_workers: int = DEFAULT_MAX_WORKERS):
        """Initialize the repository.

        Args:
            storage_path: Storage root (defaults to default_storage_path())
            max_workers: Thread pool size used for file reads
        """
        self.storage_path = Path(storage_path) if storage_path else default_storage_path()
        self.max_workers = max_workers

    def exists(self) -> bool:
        """Whether the storage root is present and is a directory."""
        return self.storage_path.is_dir()

    def list_sessions(self, year: Optional[int] = None) -> List[SessionRecord]:
        """List sessions, optionally restricted to a creation year.

        Args:
            year: Keep only sessions created in this calendar year (local time)

        Returns:
            Sessions sorted by creation time, then id

        Raises:
            CorpusNotFoundError: If the storage root cannot be read
        """
        files = self._grouped_files(SESSION_DIR)
        sessions = self._read_all(files, parse_session)
        if year is not None:
            sessions = [s for s in sessions if year_of(s.created_ms) == year]
        return sorted(sessions, key=lambda s: (s.created_ms, s.id))

    def list_messages(self, year: Optional[int] = None) -> List[MessageRecord]:
        """List messages, optionally restricted to a creation year.

        Args:
            year: Keep only messages created in this calendar year (local time)

        Returns:
            Messages sorted by creation time, then id

        Raises:
            CorpusNotFoundError: If the storage root cannot be read
        """
        files = self._grouped_files(MESSAGE_DIR)
        messages = self._read_all(files, parse_message)
        if year is not None:
            messages = [m for m in messages if year_of(m.created_ms) == year]
        return sorted(messages, key=lambda m: (m.created_ms, m.id))

    def list_projects(self) -> List[ProjectRecord]:
        """List all projects sorted by id.

        Raises:
            CorpusNotFoundError: If the storage root cannot be read
        """
        files = self._flat_files(PROJECT_DIR)
        projects = self._read_all(files, parse_project)
        return sorted(projects, key=lambda p: p.id)

    def _ensure_root(self) -> None:
        try:
            os.listdir(self.storage_path)
        except OSError as e:
            raise CorpusNotFoundError(self.storage_path, e.strerror or str(e)) from e

    def _grouped_files(self, kind: str) -> List[Path]:
        """Collect ``<kind>/<group>/*.json`` files."""
        self._ensure_root()
        kind_dir = self.storage_path / kind
        if not kind_dir.is_dir():
            logger.debug("No {} directory under {}", kind, self.storage_path)
            return []

        files: List[Path] = []
        try:
            groups = sorted(kind_dir.iterdir())
        except OSError as e:
            logger.debug("Skipping unreadable directory {}: {}", kind_dir, e)
            return []

        for group in groups:
            if not group.is_dir():
                continue
            try:
                files.extend(f for f in group.iterdir() if f.suffix == ".json")
            except OSError as e:
                logger.debug("Skipping unreadable directory {}: {}", group, e)
        return files

    def _flat_files(self, kind: str) -> List[Path]:
        """Collect ``<kind>/*.json`` files."""
        self._ensure_root()
        kind_dir = self.storage_path / kind
        try:
            return [f for f in kind_dir.iterdir() if f.suffix == ".json"]
        except OSError as e:
            logger.debug("Skipping {} directory: {}", kind, e)
            return []

    def _read_all(self, files: List[Path], parser: Callable[[Any], ParseResult]) -> List[Any]:
        """Parse files in a thread pool, dropping the ones that fail validation."""
        records = []
        skipped = 0

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(parse_file, path, parser) for path in files]
            for future in as_completed(futures):
                result = future.result()
                if result.ok:
                    records.append(result.record)
                else:
                    skipped += 1
                    logger.debug("Skipping {}: {}", result.path, result.error)

        if skipped:
            logger.info("Skipped {} malformed file(s) out of {}", skipped, len(files))
        return records


def get_repository(storage_path: Optional[Path] = None, max_workers: int = DEFAULT_MAX_WORKERS) -> CorpusRepository:
    """Build a repository for the given storage root.

    Args:
        storage_path: Storage root, or None for the platform default
        max_workers: Thread pool size used for file reads

    Returns:
        A CorpusRepository instance
    """
    return CorpusRepository(storage_path, max_workers=max_workers)

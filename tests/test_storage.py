"""
Unit tests for storage layer.

Tests corpus discovery, parallel reads, skipping of malformed files and
retrieval ordering.
"""

import json
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from opencode_wrapped.core.pricing import PricingResolver, PricingTable
from opencode_wrapped.core.stats import compute_yearly_stats
from opencode_wrapped.storage.repository import (
    CorpusNotFoundError,
    CorpusRepository,
    default_storage_path,
    get_repository,
)


def _ms(year, month, day, hour=12):
    return int(datetime(year, month, day, hour).timestamp() * 1000)


class TestCorpusRepository:
    """Test reading records from a storage tree."""

    def setup_method(self):
        """Create an empty storage root."""
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir) / "storage"
        self.root.mkdir()

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, relative: str, data) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, (dict, list)):
            path.write_text(json.dumps(data), encoding="utf-8")
        else:
            path.write_text(data, encoding="utf-8")
        return path

    def _session(self, session_id, project_id, created):
        self._write(f"session/{project_id}/{session_id}.json", {
            "id": session_id,
            "projectID": project_id,
            "title": "Refactor",
            "time": {"created": created, "updated": created + 1000},
        })

    def _message(self, message_id, session_id, created, **extra):
        data = {
            "id": message_id,
            "sessionID": session_id,
            "role": "assistant",
            "time": {"created": created},
        }
        data.update(extra)
        self._write(f"message/{session_id}/{message_id}.json", data)

    def test_exists(self):
        """The root must be a directory."""
        assert CorpusRepository(self.root).exists()
        assert not CorpusRepository(self.root / "missing").exists()

    def test_missing_root_raises(self):
        """An absent root is reported, not treated as empty."""
        repo = CorpusRepository(self.root / "missing")
        with pytest.raises(CorpusNotFoundError):
            repo.list_sessions()
        with pytest.raises(CorpusNotFoundError):
            repo.list_projects()

    def test_missing_subdirectories_are_empty(self):
        """A root without session/message/project folders has no records."""
        repo = CorpusRepository(self.root)
        assert repo.list_sessions() == []
        assert repo.list_messages() == []
        assert repo.list_projects() == []

    def test_list_sessions_sorted(self):
        """Sessions come back ordered by creation time, then id."""
        self._session("ses_b", "proj1", _ms(2025, 2, 1))
        self._session("ses_a", "proj2", _ms(2025, 2, 1))
        self._session("ses_c", "proj1", _ms(2025, 1, 1))

        sessions = CorpusRepository(self.root).list_sessions()

        assert [s.id for s in sessions] == ["ses_c", "ses_a", "ses_b"]
        assert sessions[0].project_id == "proj1"
        assert sessions[0].title == "Refactor"

    def test_list_sessions_by_year(self):
        """The year filter uses the local creation date."""
        self._session("old", "proj", _ms(2024, 12, 31, 23))
        self._session("new", "proj", _ms(2025, 1, 1, 0))

        repo = CorpusRepository(self.root)
        assert [s.id for s in repo.list_sessions(year=2025)] == ["new"]
        assert [s.id for s in repo.list_sessions(year=2024)] == ["old"]

    def test_list_messages_parses_tokens(self):
        """Token breakdowns, cost and model fields are carried over."""
        self._message(
            "msg_1", "ses_1", _ms(2025, 3, 1),
            modelID="claude-sonnet-4",
            providerID="anthropic",
            cost=0.25,
            tokens={"input": 100, "output": 50, "reasoning": 5, "cache": {"read": 7, "write": 3}},
        )

        messages = CorpusRepository(self.root).list_messages()

        assert len(messages) == 1
        message = messages[0]
        assert message.model_id == "claude-sonnet-4"
        assert message.provider_id == "anthropic"
        assert message.cost == 0.25
        assert message.tokens.input == 100
        assert message.tokens.cache_read == 7
        assert message.tokens.cache_write == 3

    def test_malformed_files_are_skipped(self):
        """Invalid JSON and invalid shapes do not stop the scan."""
        self._message("good", "ses_1", _ms(2025, 3, 1))
        self._write("message/ses_1/truncated.json", '{"id": "broken"')
        self._write("message/ses_1/array.json", [1, 2, 3])
        self._write("message/ses_1/no_time.json", {"id": "x", "sessionID": "ses_1", "role": "assistant"})
        self._write("message/ses_1/notes.txt", "ignored")

        messages = CorpusRepository(self.root).list_messages()

        assert [m.id for m in messages] == ["good"]

    def test_unusable_numbers_are_skipped(self):
        """Valid JSON with NaN, Infinity or out-of-range timestamps is skipped."""
        self._message("good", "ses_1", _ms(2025, 3, 1), tokens={"input": 10, "output": 5})
        self._write(
            "message/ses_1/nan_created.json",
            '{"id": "a", "sessionID": "ses_1", "role": "assistant", "time": {"created": NaN}}',
        )
        self._write(
            "message/ses_1/huge_created.json",
            '{"id": "b", "sessionID": "ses_1", "role": "assistant", "time": {"created": 1e20}}',
        )
        self._write(
            "message/ses_1/inf_tokens.json",
            '{"id": "c", "sessionID": "ses_1", "role": "assistant", "time": {"created": 1735689600000},'
            ' "tokens": {"input": Infinity}}',
        )
        self._write(
            "message/ses_1/nan_cost.json",
            '{"id": "d", "sessionID": "ses_1", "role": "assistant", "time": {"created": 1735689600000},'
            ' "providerID": "opencode", "cost": NaN}',
        )

        messages = CorpusRepository(self.root).list_messages()

        assert [m.id for m in messages] == ["good"]
        stats = compute_yearly_stats(2025, [], messages, [], PricingResolver(table=PricingTable()),
                                     now=datetime(2025, 12, 31))
        assert stats.total_messages == 1
        assert stats.first_party_cost == 0
        assert stats.total_tokens == 15

    def test_loose_files_in_group_directory_ignored(self):
        """Only sub-directories of message/ are scanned."""
        self._message("good", "ses_1", _ms(2025, 3, 1))
        self._write("message/stray.json", {"id": "stray"})

        assert [m.id for m in CorpusRepository(self.root).list_messages()] == ["good"]

    def test_list_projects(self):
        """Projects are read from a flat directory, sorted by id."""
        for project_id in ("p2", "p1"):
            self._write(f"project/{project_id}.json", {
                "id": project_id,
                "worktree": f"/work/{project_id}",
                "vcs": "git",
                "time": {"created": _ms(2025, 1, 1)},
            })

        projects = CorpusRepository(self.root).list_projects()

        assert [p.id for p in projects] == ["p1", "p2"]
        assert projects[0].updated_ms == projects[0].created_ms

    def test_single_worker(self):
        """Results do not depend on the pool size."""
        for i in range(5):
            self._message(f"msg_{i}", "ses_1", _ms(2025, 3, 1) + i)

        repo = CorpusRepository(self.root, max_workers=1)
        assert [m.id for m in repo.list_messages()] == [f"msg_{i}" for i in range(5)]


class TestDefaults:
    """Test default locations and the factory."""

    def test_default_storage_path_honours_xdg(self, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", "/data")
        assert default_storage_path() == Path("/data/opencode/storage")

    def test_default_storage_path_home(self, monkeypatch):
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        assert default_storage_path() == Path.home() / ".local" / "share" / "opencode" / "storage"

    def test_get_repository(self):
        repo = get_repository(Path("/tmp/somewhere"), max_workers=2)
        assert repo.storage_path == Path("/tmp/somewhere")
        assert repo.max_workers == 2

    def test_get_repository_default(self, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", os.path.join(tempfile.gettempdir(), "xdg"))
        assert get_repository().storage_path == default_storage_path()

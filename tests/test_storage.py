"""Tests for value table persistence."""

import json
from pathlib import Path

import pytest

from qtictactoe.storage import (
    DEFAULT_KEY,
    FileKeyValueBackend,
    MemoryKeyValueBackend,
    ValueTableStore,
)
from qtictactoe.value_table import ValueTable


@pytest.fixture(params=["memory", "file"])
def backend(request, tmp_path: Path):
    """Both backends behave the same through the store."""
    if request.param == "memory":
        return MemoryKeyValueBackend()
    return FileKeyValueBackend(tmp_path / "store")


class TestValueTableStore:
    """Test load/save/clear."""

    def test_load_nothing_stored(self, backend) -> None:
        """Test that a missing payload loads as an empty table."""
        assert len(ValueTableStore(backend).load()) == 0

    def test_save_then_load(self, backend) -> None:
        """Test that saved tables come back with the same values."""
        store = ValueTableStore(backend)
        table = ValueTable({
            "_________": [0.0, 0.1, 0.0, 0.0, 0.5, 0.0, 0.0, 0.0, -0.25],
            "X___O____": [0.0] * 9,
        })
        store.save(table)

        loaded = store.load()
        assert loaded.to_dict() == table.to_dict()

    def test_save_of_loaded_table_is_byte_identical(self, backend) -> None:
        """Test that an unmodified table re-saves to the same payload."""
        store = ValueTableStore(backend)
        store.save(ValueTable({"X________": [0.1 * i for i in range(9)]}))
        original = backend.get(DEFAULT_KEY)

        store.save(store.load())
        assert backend.get(DEFAULT_KEY) == original

    def test_clear_then_load_is_empty(self, backend) -> None:
        """Test that clearing removes the payload."""
        store = ValueTableStore(backend)
        store.save(ValueTable({"k": [1.0] * 9}))
        store.clear()

        assert len(store.load()) == 0
        assert backend.get(DEFAULT_KEY) is None

    def test_clear_without_payload(self, backend) -> None:
        """Test that clearing twice is harmless."""
        store = ValueTableStore(backend)
        store.clear()
        store.clear()
        assert len(store.load()) == 0

    def test_keys_are_independent(self, backend) -> None:
        """Test that separate keys hold separate tables."""
        easy = ValueTableStore(backend, "tictactoe_q_easy")
        hard = ValueTableStore(backend, "tictactoe_q_hard")
        easy.save(ValueTable({"a": [0.0] * 9}))

        assert len(hard.load()) == 0
        assert len(easy.load()) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            "not json at all",
            "{\"truncated\": [0, 0",
            "[1, 2, 3]",
            "42",
            "null",
            "{\"k\": [0, 0, 0]}",
            "{\"k\": \"xyz\"}",
            "{\"_________\": [1" + "0" * 400 + ", 0, 0, 0, 0, 0, 0, 0, 0]}",
            "[" * 100000 + "]" * 100000,
        ],
    )
    def test_malformed_payload_loads_empty(self, backend, payload: str) -> None:
        """Test that corrupt data never blocks training or play."""
        backend.set(DEFAULT_KEY, payload)
        assert len(ValueTableStore(backend).load()) == 0

    def test_payload_shape(self) -> None:
        """Test the persisted JSON shape."""
        backend = MemoryKeyValueBackend()
        ValueTableStore(backend).save(ValueTable({"X________": [0, 0, 0, 0, 0.5, 0, 0, 0, 0]}))

        payload = json.loads(backend.get(DEFAULT_KEY))
        assert payload == {"X________": [0.0, 0.0, 0.0, 0.0, 0.5, 0.0, 0.0, 0.0, 0.0]}

    def test_reads_integer_payload(self) -> None:
        """Test payloads written with integer zeros."""
        backend = MemoryKeyValueBackend({DEFAULT_KEY: '{"X___O____":[0,0,1,0,0,0,0,0,0]}'})
        table = ValueTableStore(backend).load()
        assert table.peek("X___O____")[2] == 1.0


class TestFileKeyValueBackend:
    """Test the directory-based backend."""

    def test_creates_directory_on_write(self, tmp_path: Path) -> None:
        """Test lazy directory creation."""
        directory = tmp_path / "nested" / "store"
        backend = FileKeyValueBackend(directory)
        backend.set("tictactoe_q", "{}")

        assert (directory / "tictactoe_q.json").read_text(encoding="utf-8") == "{}"
        assert not (directory / "tictactoe_q.tmp").exists()

    def test_key_is_sanitized(self, tmp_path: Path) -> None:
        """Test that path separators cannot escape the directory."""
        backend = FileKeyValueBackend(tmp_path)
        backend.set("../escape", "x")

        assert backend.get("../escape") == "x"
        assert (tmp_path / ".._escape.json").exists()

    def test_get_missing(self, tmp_path: Path) -> None:
        """Test reading an absent key."""
        assert FileKeyValueBackend(tmp_path).get("missing") is None

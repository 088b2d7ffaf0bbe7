import os
import pytest
from embedded_json_doc_store import (
    Database,
    DecodeError,
    ReadOnlyError,
    StoreIOError,
    StoreStateError,
    Tree,
)
from rich.console import Console

_console = Console(force_terminal=True, color_system="standard")

def progress_printer(evt):
    phase = evt.get("phase", "")
    pct = int(evt.get("pct", 0))
    msg = evt.get("msg", "")
    parts = []
    if phase:
        parts.append(phase)
    parts.append(f"{pct}%")
    if msg:
        parts.append(f"- {msg}")
    text = f"[progress] {' '.join(parts)}"
    _console.print(f"\r{text}", end="", highlight=False, soft_wrap=False)
    if pct >= 100:
        _console.print()

def read_text(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def test_load_creates_file_and_basic_insert(tmp_path):
    db_path = tmp_path / "basic.dino"
    db = Database(str(db_path), on_progress=progress_printer)
    assert not db_path.exists()

    db.load()
    assert db_path.exists()
    assert len(db) == 0

    db.insert("key", "q")
    assert str(db.find("key")) == "q"
    assert len(db) == 1

    # Write-through: the file already holds the pretty-printed document
    assert read_text(db_path) == '{\n  "key": "q"\n}'

def test_empty_file_is_empty_document(tmp_path):
    db_path = tmp_path / "empty.dino"
    db_path.write_bytes(b"")
    db = Database(str(db_path)).load()
    assert len(db) == 0
    assert str(db) == "{}"
    # Loading alone does not rewrite the file
    assert db_path.read_bytes() == b""

def test_reopen_sees_all_mutations(tmp_path):
    db_path = str(tmp_path / "reopen.dino")
    db = Database(db_path).load()
    db.insert("name", "Alice")
    db.insert_number("age", 30)
    db.insert_bool("active", True)
    db.insert_array("tags", ["a", "b"])
    sub = Tree()
    sub.insert("city", "Wien")
    db.insert_tree("address", sub)
    db.insert("tmp", "x")
    db.remove("tmp")
    db.insert("name", "Bob")
    expected = db.to_dict()
    db.close()

    db2 = Database(db_path).load()
    assert db2.to_dict() == expected
    assert db2.keys() == ["name", "age", "active", "tags", "address"]
    assert db2.find("name").as_str() == "Bob"
    assert db2.find("address").as_tree().find("city").as_str() == "Wien"

def test_malformed_file_raises_decode_error(tmp_path):
    db_path = tmp_path / "broken.dino"
    db_path.write_text("{not json", encoding="utf-8")
    db = Database(str(db_path))
    with pytest.raises(DecodeError):
        db.load()
    assert not db.loaded
    # The file is left untouched
    assert read_text(db_path) == "{not json"

    # After repair the same instance can load
    db_path.write_text('{"a": "b"}', encoding="utf-8")
    db.load()
    assert db.find("a").as_str() == "b"

@pytest.mark.parametrize("content", ['["a", "b"]', '"text"', "42", "   \n"])
def test_non_object_or_blank_content_is_rejected(tmp_path, content):
    db_path = tmp_path / "odd.dino"
    db_path.write_text(content, encoding="utf-8")
    with pytest.raises(DecodeError):
        Database(str(db_path)).load()

def test_invalid_utf8_is_decode_error(tmp_path):
    db_path = tmp_path / "latin1.dino"
    db_path.write_bytes(b'{"a": "\xe9"}')
    with pytest.raises(DecodeError):
        Database(str(db_path)).load()

def test_operations_before_load_fail(tmp_path):
    db = Database(str(tmp_path / "never.dino"))
    with pytest.raises(StoreStateError):
        db.insert("a", "b")
    with pytest.raises(StoreStateError):
        db.find("a")
    with pytest.raises(StoreStateError):
        len(db)
    with pytest.raises(StoreStateError):
        db.contains_key("a")
    assert not (tmp_path / "never.dino").exists()

def test_double_load_and_use_after_close(tmp_path):
    db = Database(str(tmp_path / "life.dino")).load()
    with pytest.raises(StoreStateError):
        db.load()
    db.close()
    db.close()
    with pytest.raises(StoreStateError):
        db.insert("a", "b")

def test_context_manager_loads_and_closes(tmp_path):
    db_path = str(tmp_path / "ctx.dino")
    with Database(db_path) as db:
        db.insert("k", "v")
    assert not db.loaded
    with Database(db_path) as db2:
        assert db2.find("k").as_str() == "v"

def test_read_only_mode(tmp_path):
    db_path = str(tmp_path / "ro.dino")
    with Database(db_path) as db:
        db.insert("k", "v")

    ro = Database(db_path, mode="r").load()
    assert ro.find("k").as_str() == "v"
    with pytest.raises(ReadOnlyError):
        ro.insert("k", "other")
    with pytest.raises(ReadOnlyError):
        ro.remove("k")
    assert ro.find("k").as_str() == "v"

def test_read_only_missing_file(tmp_path):
    with pytest.raises(StoreIOError):
        Database(str(tmp_path / "missing.dino"), mode="r").load()

def test_atomic_replace_mode(tmp_path):
    db_path = tmp_path / "atomic.dino"
    db = Database(str(db_path), durability={"atomic_replace": True, "fsync": True}).load()
    db.insert("a", "1")
    db.insert("b", "2")
    db.remove("a")
    assert not os.path.exists(str(db_path) + ".tmp")
    assert read_text(db_path) == '{\n  "b": "2"\n}'
    db.close()

    db2 = Database(str(db_path)).load()
    assert db2.keys() == ["b"]

def test_progress_events(tmp_path):
    events = []

    def collect(evt):
        events.append(evt.get("phase"))

    db = Database(str(tmp_path / "events.dino"), on_progress=collect)
    db.load()
    assert events == ["load.start", "load.read", "load.done"]

    events.clear()
    db.insert("a", "b")
    assert events == ["save.start", "save.write", "save.done"]

    # Reads emit nothing
    events.clear()
    db.find("a")
    assert events == []

def test_too_deep_document_then_repaired_file(tmp_path):
    db_path = tmp_path / "deep.dino"
    depth = 200000
    db_path.write_text('{"a": ' + "[" * depth + "]" * depth + "}", encoding="utf-8")
    db = Database(str(db_path))
    with pytest.raises(DecodeError):
        db.load()
    assert not db.loaded

    db_path.write_text('{"a": "b"}', encoding="utf-8")
    db.load()
    assert db.find("a").as_str() == "b"

def test_callback_failure_during_load_releases_file(tmp_path):
    db_path = tmp_path / "cb.dino"
    db_path.write_text('{"a": "b"}', encoding="utf-8")
    fail = {"on": True}

    def flaky(evt):
        if fail["on"] and evt.get("phase") == "load.read":
            raise RuntimeError("callback broke")

    db = Database(str(db_path), on_progress=flaky)
    with pytest.raises(RuntimeError):
        db.load()
    assert not db.loaded

    fail["on"] = False
    db.load()
    assert db.keys() == ["a"]

def test_atomic_replace_failure_removes_staging_file(tmp_path, monkeypatch):
    db_path = tmp_path / "staged.dino"
    db = Database(str(db_path), durability={"atomic_replace": True}).load()
    db.insert("a", "1")

    def boom(src, dst):
        raise OSError("replace refused")

    monkeypatch.setattr(os, "replace", boom)
    with pytest.raises(StoreIOError):
        db.insert("b", "2")
    assert not os.path.exists(str(db_path) + ".tmp")
    assert read_text(db_path) == '{\n  "a": "1"\n}'

import json
import threading

import pytest

from store import BOOKS, USERS, InMemoryStore, JsonFileStore, StoreError


@pytest.fixture
def file_store(tmp_path):
    return JsonFileStore(tmp_path / "data")


def test_read_missing_collection_is_empty(file_store):
    assert file_store.read(USERS) == []
    assert file_store.read(BOOKS) == []


def test_write_creates_data_dir_and_pretty_prints(file_store):
    records = [{"id": "1", "title": "Dune"}]
    file_store.write(BOOKS, records)

    path = file_store.data_dir / "books.json"
    assert path.read_text(encoding="utf-8") == json.dumps(records, indent=2)
    assert file_store.read(BOOKS) == records
    # no temp files left behind
    assert [p.name for p in file_store.data_dir.iterdir()] == ["books.json"]


def test_write_replaces_whole_collection(file_store):
    file_store.write(USERS, [{"id": "1"}, {"id": "2"}])
    file_store.write(USERS, [{"id": "3"}])
    assert file_store.read(USERS) == [{"id": "3"}]


def test_corrupt_file_raises_store_error(file_store):
    file_store.data_dir.mkdir(parents=True)
    (file_store.data_dir / "users.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        file_store.read(USERS)


def test_non_array_file_raises_store_error(file_store):
    file_store.data_dir.mkdir(parents=True)
    (file_store.data_dir / "books.json").write_text('{"id": "1"}', encoding="utf-8")
    with pytest.raises(StoreError):
        file_store.read(BOOKS)


def test_invalid_utf8_file_raises_store_error(file_store):
    file_store.data_dir.mkdir(parents=True)
    (file_store.data_dir / "books.json").write_bytes(b"\xff")
    with pytest.raises(StoreError):
        file_store.read(BOOKS)


def test_array_of_non_objects_raises_store_error(file_store):
    file_store.data_dir.mkdir(parents=True)
    (file_store.data_dir / "books.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StoreError):
        file_store.read(BOOKS)


def test_unknown_collection(file_store):
    with pytest.raises(StoreError):
        file_store.read("../etc/passwd")


def test_unserializable_record_raises_store_error(file_store):
    with pytest.raises(StoreError):
        file_store.write(BOOKS, [{"id": object()}])
    assert file_store.read(BOOKS) == []


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileStore(tmp_path / "data")


def test_find_helpers(any_store):
    any_store.write(USERS, [{"id": "1", "email": "a@x.com"}, {"id": "2", "email": "b@x.com"}])

    assert any_store.find(USERS, "2") == {"id": "2", "email": "b@x.com"}
    assert any_store.find(USERS, "3") is None
    assert any_store.find_by(USERS, "email", "a@x.com")["id"] == "1"
    assert any_store.find_by(USERS, "email", "A@x.com") is None


def test_in_memory_store_returns_copies():
    store = InMemoryStore()
    store.write(BOOKS, [{"id": "1"}])
    store.read(BOOKS).append({"id": "2"})
    assert store.read(BOOKS) == [{"id": "1"}]


def test_concurrent_appends_are_not_lost(file_store):
    def worker(n):
        file_store.append(BOOKS, {"id": str(n)})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(int(record["id"]) for record in file_store.read(BOOKS)) == list(range(20))

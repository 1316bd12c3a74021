import pytest

from conftest import FakeBucket, FakeStorage, live, marker
from s3keep.errors import RemoteCallError
from s3keep.versions import DEFAULT_PAGE_SIZE, list_versions


def _records():
    records = []
    for key in ("a", "b", "c"):
        for i in range(4):
            records.append(live(key, f"{key}-v{i}", i + 1, size=i))
        records.append(marker(key, f"{key}-m", 0.5))
    return records


def test_pagination_matches_single_fetch():
    paged = FakeStorage({"bkt": FakeBucket(records=_records())}, max_page=4)
    single = FakeStorage({"bkt": FakeBucket(records=_records())}, max_page=10000)

    paged_history = list_versions(paged, "bkt")
    single_history = list_versions(single, "bkt")

    assert len(paged.list_calls) == 4
    assert len(single.list_calls) == 1
    assert {k: sorted(v, key=lambda r: r.version_id) for k, v in paged_history.items()} == {
        k: sorted(v, key=lambda r: r.version_id) for k, v in single_history.items()
    }


def test_continuation_token_is_passed_back():
    storage = FakeStorage({"bkt": FakeBucket(records=_records())}, max_page=5)
    list_versions(storage, "bkt", page_size=7)
    tokens = [call[2] for call in storage.list_calls]
    assert tokens == [None, 5, 10]
    assert all(call[3] == 7 for call in storage.list_calls)


def test_default_page_size():
    storage = FakeStorage({"bkt": FakeBucket(records=_records())})
    list_versions(storage, "bkt")
    assert storage.list_calls[0][3] == DEFAULT_PAGE_SIZE == 10000


def test_delete_markers_merge_into_key_history():
    storage = FakeStorage({"bkt": FakeBucket(records=_records())})
    history = list_versions(storage, "bkt")
    assert set(history) == {"a", "b", "c"}
    a_markers = [r for r in history["a"] if r.is_delete_marker]
    assert [r.version_id for r in a_markers] == ["a-m"]
    assert a_markers[0].size == 0
    assert len(history["a"]) == 5


def test_prefix_is_forwarded():
    storage = FakeStorage({"bkt": FakeBucket(records=_records())})
    history = list_versions(storage, "bkt", prefix="b")
    assert set(history) == {"b"}
    assert storage.list_calls[0][1] == "b"


def test_empty_bucket():
    storage = FakeStorage({"bkt": FakeBucket()})
    assert list_versions(storage, "bkt") == {}


def test_listing_error_aborts(remote_failure):
    storage = FakeStorage({"bkt": FakeBucket(records=_records())})
    storage.fail_on["ListObjectVersions"] = remote_failure
    with pytest.raises(RemoteCallError):
        list_versions(storage, "bkt")


def test_progress_is_printed(capsys):
    storage = FakeStorage({"bkt": FakeBucket(records=_records())}, max_page=10)
    list_versions(storage, "bkt")
    out = capsys.readouterr().out
    assert "Got 10 versions for page 1" in out
    assert "Got 5 versions for page 2" in out
    assert "Summary: 15 file versions for 3 files" in out

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from s3keep.errors import RegionAccessError, RemoteCallError
from s3keep.versions import VersionRecord

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def hours_ago(hours: float) -> datetime:
    return BASE_TIME - timedelta(hours=hours)


def live(key: str, version_id: str, age: float, size: int = 100) -> VersionRecord:
    return VersionRecord(key, version_id, False, hours_ago(age), size, False)


def marker(key: str, version_id: str, age: float) -> VersionRecord:
    return VersionRecord(key, version_id, False, hours_ago(age), 0, True)


class FakeBucket:
    def __init__(
        self,
        versioning: str = "Enabled",
        records: Optional[List[VersionRecord]] = None,
        region_error: bool = False,
    ) -> None:
        self.versioning = versioning
        self.records = list(records or [])
        self.region_error = region_error


class FakeStorage:
    """Deterministic in-memory stand-in for ``S3Storage``.

    Listing pages hold at most ``max_page`` records and walk the bucket in
    (key, newest first) order, resuming from an integer offset token.
    """

    def __init__(self, buckets: Dict[str, FakeBucket], max_page: int = 3) -> None:
        self.buckets = buckets
        self.max_page = max_page
        self.list_calls: List[Tuple[str, str, object, int]] = []
        self.delete_calls: List[Tuple[str, List[Tuple[str, str]]]] = []
        self.fail_on: Dict[str, Exception] = {}
        self.short_deletes = 0

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def list_buckets(self) -> List[str]:
        self._maybe_fail("ListBuckets")
        return list(self.buckets)

    def bucket_exists(self, bucket: str) -> bool:
        self._maybe_fail("HeadBucket")
        return bucket in self.buckets

    def get_versioning_status(self, bucket: str) -> str:
        self._maybe_fail("GetBucketVersioning")
        fake = self.buckets[bucket]
        if fake.region_error:
            raise RegionAccessError(bucket, "BucketRegionError")
        return fake.versioning

    def list_versions_page(self, bucket, prefix, token, page_size):
        self._maybe_fail("ListObjectVersions")
        self.list_calls.append((bucket, prefix, token, page_size))
        ordered = sorted(
            (r for r in self.buckets[bucket].records if r.key.startswith(prefix or "")),
            key=lambda r: (r.key, -r.last_modified.timestamp()),
        )
        start = token or 0
        end = start + min(page_size, self.max_page)
        page = ordered[start:end]
        versions = [_to_entry(r) for r in page if not r.is_delete_marker]
        markers = [_to_entry(r) for r in page if r.is_delete_marker]
        next_token = end if end < len(ordered) else None
        return versions, markers, next_token

    def delete_versions(self, bucket: str, targets: List[Tuple[str, str]]) -> int:
        self._maybe_fail("DeleteObjects")
        targets = list(targets)
        self.delete_calls.append((bucket, targets))
        doomed = set(targets[self.short_deletes:])
        fake = self.buckets[bucket]
        fake.records = [
            r for r in fake.records if (r.key, r.version_id) not in doomed
        ]
        return len(doomed)


def _to_entry(record: VersionRecord) -> dict:
    entry = {
        "Key": record.key,
        "VersionId": record.version_id,
        "IsLatest": record.is_latest,
        "LastModified": record.last_modified,
    }
    if not record.is_delete_marker:
        entry["Size"] = record.size
    return entry


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage(
        {
            "b1": FakeBucket(
                records=[
                    live("key1", "b1-key1-v1", 10),
                    live("key1", "b1-key1-v2", 9),
                    marker("key1", "b1-key1-v2-deleted", 8),
                    live("key1", "b1-key1-v3", 7),
                    marker("key2", "b1-key2-deleted", 11),
                    live("key2", "b1-key2-v1", 10),
                    live("key2", "b1-key2-v2", 9),
                ]
            ),
            "b2": FakeBucket(
                versioning="",
                records=[
                    live("key1", "b2-key1-v1", 10),
                    live("key1", "b2-key1-v2", 9),
                    live("key2", "b2-key2-v1", 10),
                ],
            ),
            "bucket-in-wrong-region": FakeBucket(
                region_error=True,
                records=[live("key1", "b3-key1-v1", 10)],
            ),
        }
    )


@pytest.fixture
def remote_failure() -> RemoteCallError:
    return RemoteCallError("ListObjectVersions", "Internal error", code="InternalError")

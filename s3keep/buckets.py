from dataclasses import dataclass
from typing import Any, List

from .errors import NotFoundError, RegionAccessError
from .s3 import VERSIONING_ENABLED

ALL_BUCKETS = "*"

VERSIONING_ON = "enabled"
VERSIONING_OFF = "disabled"
VERSIONING_REGION_MISMATCH = "region-mismatch"


@dataclass(frozen=True)
class BucketIdentity:
    name: str
    versioning: str

    @property
    def is_versioned(self) -> bool:
        return self.versioning == VERSIONING_ON


def get_buckets(storage: Any, target: str) -> List[str]:
    if target == ALL_BUCKETS:
        print("List all buckets ...")
        return storage.list_buckets()
    if not storage.bucket_exists(target):
        raise NotFoundError(target)
    return [target]


def probe_bucket(storage: Any, name: str) -> BucketIdentity:
    try:
        status = storage.get_versioning_status(name)
    except RegionAccessError:
        return BucketIdentity(name, VERSIONING_REGION_MISMATCH)
    if status == VERSIONING_ENABLED:
        return BucketIdentity(name, VERSIONING_ON)
    return BucketIdentity(name, VERSIONING_OFF)


def filter_versioned(storage: Any, buckets: List[str]) -> List[str]:
    return [name for name in buckets if probe_bucket(storage, name).is_versioned]


def select_buckets(storage: Any, target: str) -> List[str]:
    buckets = get_buckets(storage, target)
    print(f"Found these buckets {buckets}")
    buckets = filter_versioned(storage, buckets)
    print(f"Found these buckets with versioning enabled {buckets}")
    return buckets

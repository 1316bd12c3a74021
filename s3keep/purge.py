from typing import Any, Sequence

from .retention import PurgeTarget
from .utils import chunked

DELETE_BATCH_SIZE = 1000


def purge_versions(
    storage: Any,
    bucket: str,
    targets: Sequence[PurgeTarget],
    batch_size: int = DELETE_BATCH_SIZE,
) -> int:
    """Delete ``targets`` in sequential batches and return the confirmed count.

    A failing batch stops the run; batches already sent stay deleted.
    """
    if not 0 < batch_size <= DELETE_BATCH_SIZE:
        raise ValueError(f"batch_size must be between 1 and {DELETE_BATCH_SIZE}")
    if not targets:
        return 0

    print(f"Deleting {len(targets)} file versions for {bucket} ...")
    total_deleted = 0
    for chunk in chunked(targets, batch_size):
        deleted = storage.delete_versions(bucket, [t.as_pair() for t in chunk])
        total_deleted += deleted
        print(f"\tDeleted {deleted} versions")
        if deleted < len(chunk):
            print(
                f"Warning: {len(chunk) - deleted} of {len(chunk)} versions "
                f"in this batch were not confirmed deleted"
            )
    return total_deleted

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List

DEFAULT_PAGE_SIZE = 10000


@dataclass(frozen=True)
class VersionRecord:
    key: str
    version_id: str
    is_latest: bool
    last_modified: datetime
    size: int = 0
    is_delete_marker: bool = False


def _append_records(
    history: Dict[str, List[VersionRecord]],
    entries: Iterable[Dict[str, Any]],
    is_delete_marker: bool,
) -> None:
    for entry in entries:
        record = VersionRecord(
            key=entry["Key"],
            version_id=entry["VersionId"],
            is_latest=bool(entry.get("IsLatest", False)),
            last_modified=entry["LastModified"],
            size=0 if is_delete_marker else int(entry.get("Size", 0) or 0),
            is_delete_marker=is_delete_marker,
        )
        history.setdefault(record.key, []).append(record)


def list_versions(
    storage: Any,
    bucket: str,
    prefix: str = "",
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Dict[str, List[VersionRecord]]:
    """Collect every version and delete marker in ``bucket``, grouped by key.

    Pages are fetched one after another until the listing stops returning a
    continuation token. A failed page aborts the whole listing.
    """
    print(f"Get file versions for {bucket}/{prefix}")
    history: Dict[str, List[VersionRecord]] = {}
    token = None
    page_number = 1
    record_count = 0

    while True:
        versions, delete_markers, token = storage.list_versions_page(
            bucket, prefix, token, page_size
        )
        page_count = len(versions) + len(delete_markers)
        print(f"\tGot {page_count} versions for page {page_number}")

        _append_records(history, versions, is_delete_marker=False)
        _append_records(history, delete_markers, is_delete_marker=True)
        record_count += page_count

        if not token:
            break
        page_number += 1

    print(f"Summary: {record_count} file versions for {len(history)} files")
    return history

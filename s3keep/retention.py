from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .utils import format_bytes
from .versions import VersionRecord


@dataclass(frozen=True)
class PurgeTarget:
    key: str
    version_id: str

    def as_pair(self) -> Tuple[str, str]:
        return self.key, self.version_id


@dataclass
class RetentionPlan:
    keep: int
    targets: List[PurgeTarget] = field(default_factory=list)
    reclaim_bytes: int = 0
    purged_by_key: Dict[str, List[VersionRecord]] = field(default_factory=dict)


def ignore_short_histories(
    history: Dict[str, List[VersionRecord]], keep: int
) -> Dict[str, List[VersionRecord]]:
    return {key: records for key, records in history.items() if len(records) > keep}


def sort_newest_first(records: List[VersionRecord]) -> List[VersionRecord]:
    # sorted() is stable with reverse=True, so equal timestamps keep listing order
    return sorted(records, key=lambda r: r.last_modified, reverse=True)


def plan_retention(history: Dict[str, List[VersionRecord]], keep: int) -> RetentionPlan:
    """Decide which versions go, keeping the ``keep`` newest live versions per key.

    Delete markers newer than the last kept live version survive without using
    up a slot. Everything older than that version, markers included, is
    purged. Keys with ``keep`` records or fewer are left untouched. The input
    is never modified.
    """
    if keep < 0:
        raise ValueError("keep must be >= 0")

    plan = RetentionPlan(keep=keep)
    for key, records in ignore_short_histories(history, keep).items():
        purged: List[VersionRecord] = []
        live_seen = 0
        for record in sort_newest_first(records):
            if live_seen >= keep:
                purged.append(record)
                plan.targets.append(PurgeTarget(record.key, record.version_id))
                plan.reclaim_bytes += record.size
            if not record.is_delete_marker:
                live_seen += 1
        if purged:
            plan.purged_by_key[key] = purged
    return plan


def print_plan(bucket: str, plan: RetentionPlan) -> None:
    for key, purged in plan.purged_by_key.items():
        print(f"Versions to delete for {key} (count = {len(purged)}):")
        for record in purged:
            marker = " [delete marker]" if record.is_delete_marker else ""
            print(f"\t {record.version_id} ({format_bytes(record.size)}){marker}")
    print(f"Total space recovered for {bucket}: {format_bytes(plan.reclaim_bytes)}")
    print(f"Total versions to delete for {bucket}: {len(plan.targets)}")

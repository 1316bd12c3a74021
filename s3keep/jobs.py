from dataclasses import dataclass
from typing import Any, List, Optional

from .buckets import select_buckets
from .purge import purge_versions
from .retention import RetentionPlan, plan_retention, print_plan
from .versions import list_versions


@dataclass
class BucketRun:
    bucket: str
    plan: RetentionPlan
    deleted: Optional[int] = None


def prune_bucket(
    storage: Any, bucket: str, keep: int, prefix: str = "", confirm: bool = False
) -> BucketRun:
    history = list_versions(storage, bucket, prefix)
    plan = plan_retention(history, keep)
    print_plan(bucket, plan)
    if not confirm:
        if plan.targets:
            print(f"[dry-run] {len(plan.targets)} version(s) left in place; use --confirm to delete")
        return BucketRun(bucket, plan)
    deleted = purge_versions(storage, bucket, plan.targets)
    return BucketRun(bucket, plan, deleted)


def run_prune(
    storage: Any, target: str, keep: int, prefix: str = "", confirm: bool = False
) -> List[BucketRun]:
    if keep < 0:
        raise ValueError("Versions count must be >= 0")
    results: List[BucketRun] = []
    for bucket in select_buckets(storage, target):
        print(f"\n==> Bucket: {bucket}")
        results.append(prune_bucket(storage, bucket, keep, prefix, confirm))
    return results

from typing import Iterator, List, Optional, Sequence, TypeVar
import os

T = TypeVar("T")

_TRUE_VALUES = ("1", "true", "yes", "on")


def getenv(name: str, default: Optional[str] = None) -> str:
    value = os.getenv(name, default)
    return value or ""


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def format_bytes(num_bytes: int) -> str:
    if num_bytes < 1000:
        return f"{num_bytes} B"
    size = float(num_bytes)
    for unit in ("kB", "MB", "GB", "TB", "PB"):
        size /= 1000.0
        if size < 1000.0 or unit == "PB":
            break
    return f"{size:.1f} {unit}"


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield list(items[i : i + size])

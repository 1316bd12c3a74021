from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
from pathlib import Path
import sys
import re
import os

from .utils import getenv, parse_bool

try:
    import tomllib as toml_loader
except ImportError:
    import tomli as toml_loader


def _resolve_env_string(value: str) -> str:
    if isinstance(value, str) and re.fullmatch(r"ENV_[A-Z0-9_]+", value):
        var_name = value[4:]
        env_val = os.getenv(var_name)
        if env_val is None:
            print(
                f"Warning: Environment variable '{var_name}' not set for placeholder '{value}'"
            )
            return value
        return env_val
    return value


def _resolve_env_placeholders(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _resolve_env_placeholders(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_resolve_env_placeholders(v) for v in obj]
    if isinstance(obj, str):
        return _resolve_env_string(obj)
    return obj


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return {}
    cfg_path = Path(config_path)
    if not cfg_path.exists():
        print(f"Config file not found: {cfg_path}")
        sys.exit(1)
    try:
        with cfg_path.open("rb") as fp:
            data: Dict[str, Any] = toml_loader.load(fp)
    except (OSError, toml_loader.TOMLDecodeError) as err:
        print(f"Failed to read config TOML: {err}")
        sys.exit(1)

    env_paths: List[Path] = []
    default_env = cfg_path.parent / ".env"
    if default_env.exists():
        env_paths.append(default_env)
    dot_env = data.get("dot_env")
    dot_envs = data.get("dot_envs") or []
    if isinstance(dot_env, str) and dot_env:
        env_paths.append(cfg_path.parent / dot_env)
    if isinstance(dot_envs, list):
        for p in dot_envs:
            if isinstance(p, str) and p:
                env_paths.append(cfg_path.parent / p)
    for p in env_paths:
        load_dotenv(dotenv_path=str(p), override=False)

    return _resolve_env_placeholders(data)


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def resolve_prune_options(args: Any, cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge CLI flags over S3KEEP_* variables over the ``[prune]`` table."""
    prune_cfg = cfg.get("prune", {}) or {}

    bucket = _first_set(
        getattr(args, "bucket", None), getenv("S3KEEP_BUCKET"), prune_cfg.get("bucket")
    )
    if not bucket:
        raise ValueError("A bucket is required (use '*' for all buckets)")

    raw_count = _first_set(
        getattr(args, "count", None), getenv("S3KEEP_COUNT"), prune_cfg.get("count")
    )
    if raw_count is None:
        raise ValueError("The number of versions to keep (--count) is required")
    try:
        count = int(raw_count)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid versions count: {raw_count!r}")
    if count < 0:
        raise ValueError(f"Versions count must be >= 0, got {count}")

    prefix = _first_set(
        getattr(args, "prefix", None), getenv("S3KEEP_PREFIX"), prune_cfg.get("prefix")
    )
    confirm = bool(getattr(args, "confirm", False)) or parse_bool(
        prune_cfg.get("confirm", False)
    )
    return {
        "bucket": str(bucket),
        "prefix": str(prefix or ""),
        "count": count,
        "confirm": confirm,
    }

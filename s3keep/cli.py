import os
import argparse
from typing import List, Optional
from dotenv import load_dotenv

from .config import load_config, resolve_prune_options
from .errors import PruneError
from .jobs import run_prune
from .s3 import S3Storage, create_s3_client
from .utils import parse_bool


def print_extended_help() -> None:
    help_text = (
        "\n"
        "s3keep - Extended Help\n"
        "\n"
        "Commands/Flags:\n"
        "  -b, --bucket <name>          Bucket to prune, '*' for every bucket\n"
        "  -n, --count <N>              How many live versions to keep per key\n"
        "  -p, --prefix <prefix>        Only look at keys under this prefix\n"
        "      --confirm                Really delete (default prints the plan only)\n"
        "  -r, --s3-region <region>     S3 region (default: eu-west-1)\n"
        "  -e, --s3-endpoint <host>     Custom S3 endpoint\n"
        "  -s, --s3-disable-ssl <bool>  Talk plain HTTP to the endpoint\n"
        "  -c, --config <file>          Path to the TOML config file\n"
        "      --list-buckets           List available buckets and exit\n"
        "      --help-extended          Show this extended help\n"
        "\n"
        "Retention rules:\n"
        "  Keys with N records or fewer (versions + delete markers) are skipped.\n"
        "  Otherwise the N newest live versions are kept, together with any\n"
        "  delete marker newer than the last kept version. Everything older\n"
        "  is deleted, delete markers included.\n"
        "\n"
        "TOML Configuration:\n"
        "  [s3] endpoint, region, disable_ssl, access_key_id, secret_access_key\n"
        "  [prune] bucket, prefix, count, confirm\n"
        "  dot_env = \".env\" | dot_envs = [\"a.env\", \"b.env\"] (optional)\n"
        "\n"
        "Environment:\n"
        "  S3KEEP_BUCKET, S3KEEP_PREFIX, S3KEEP_COUNT, S3KEEP_ENDPOINT,\n"
        "  S3KEEP_REGION, S3KEEP_DISABLE_SSL, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY\n"
        "  Any TOML value 'ENV_NAME' will be replaced by $NAME from the environment.\n"
        "\n"
        "Examples:\n"
        "  Show the plan:       s3keep -b my-bucket -n 3\n"
        "  Delete for real:     s3keep -b my-bucket -n 3 --confirm\n"
        "  Every bucket:        s3keep -b '*' -n 5\n"
        "  Local MinIO:         s3keep -b data -n 1 -e localhost:9000 -s true\n"
    )
    print(help_text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Delete old object versions from versioned S3 buckets"
    )
    parser.add_argument(
        "--bucket", "-b", help="The bucket name to check. Use '*' to check all buckets"
    )
    parser.add_argument(
        "--count", "-n", type=int, help="How many versions to keep"
    )
    parser.add_argument("--prefix", "-p", help="Only consider keys with this prefix")
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Delete the versions instead of only printing them",
    )
    parser.add_argument("--s3-region", "-r", help="The S3 region")
    parser.add_argument("--s3-endpoint", "-e", help="S3 endpoint")
    parser.add_argument("--s3-disable-ssl", "-s", help="Disable SSL with S3 (true/false)")
    parser.add_argument("--config", "-c", help="Path to the TOML configuration file")
    parser.add_argument(
        "--list-buckets", action="store_true", help="List available buckets and exit"
    )
    parser.add_argument(
        "--help-extended", action="store_true", help="Show extended help and exit"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    dotenv_path = os.getenv("DOTENV_PATH", ".env")
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path=dotenv_path)

    args = build_parser().parse_args(argv)

    if args.help_extended:
        print_extended_help()
        return

    cfg = load_config(args.config)
    disable_ssl = None
    if args.s3_disable_ssl is not None:
        disable_ssl = parse_bool(args.s3_disable_ssl)
    client = create_s3_client(
        cfg,
        endpoint=args.s3_endpoint,
        region=args.s3_region,
        disable_ssl=disable_ssl,
    )
    storage = S3Storage(client)

    try:
        if args.list_buckets:
            names = storage.list_buckets()
            if not names:
                print("No buckets returned or insufficient permissions.")
            else:
                print("Buckets:")
                for n in names:
                    print(f"- {n}")
            return

        opts = resolve_prune_options(args, cfg)
        if not opts["confirm"]:
            print("[dry-run] Nothing will be deleted without --confirm")
        results = run_prune(
            storage,
            opts["bucket"],
            opts["count"],
            prefix=opts["prefix"],
            confirm=opts["confirm"],
        )
    except (PruneError, ValueError) as err:
        print(f"Error: {err}")
        raise SystemExit(1)

    planned = sum(len(r.plan.targets) for r in results)
    if opts["confirm"]:
        deleted = sum(r.deleted or 0 for r in results)
        print(f"Done: {deleted} of {planned} version(s) deleted in {len(results)} bucket(s)")
    else:
        print(f"Done: {planned} version(s) would be deleted in {len(results)} bucket(s)")

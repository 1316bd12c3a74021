from typing import Any, Dict, List, Optional, Sequence, Tuple
from botocore.exceptions import BotoCoreError, ClientError
from botocore.client import Config
import boto3

from .errors import RegionAccessError, RemoteCallError
from .utils import getenv, parse_bool

DEFAULT_REGION = "eu-west-1"
VERSIONING_ENABLED = "Enabled"

_MISSING_BUCKET_CODES = ("404", "NotFound", "NoSuchBucket")
_REGION_MISMATCH_CODES = (
    "BucketRegionError",
    "PermanentRedirect",
    "AuthorizationHeaderMalformed",
)


def create_s3_client(
    cfg: Dict[str, Any],
    endpoint: Optional[str] = None,
    region: Optional[str] = None,
    disable_ssl: Optional[bool] = None,
):
    s3_cfg = cfg.get("s3", {}) or {}
    endpoint = endpoint or getenv("S3KEEP_ENDPOINT", s3_cfg.get("endpoint"))
    region = (
        region or getenv("S3KEEP_REGION", s3_cfg.get("region")) or DEFAULT_REGION
    )
    if disable_ssl is None:
        disable_ssl = parse_bool(
            getenv("S3KEEP_DISABLE_SSL", str(s3_cfg.get("disable_ssl", "")))
        )
    access_key = getenv("AWS_ACCESS_KEY_ID", s3_cfg.get("access_key_id"))
    secret_key = getenv("AWS_SECRET_ACCESS_KEY", s3_cfg.get("secret_access_key"))

    client_kwargs: Dict[str, Any] = {
        "region_name": region,
        "use_ssl": not disable_ssl,
        "config": Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        ),
    }
    if endpoint:
        if "://" not in endpoint:
            scheme = "http" if disable_ssl else "https"
            endpoint = f"{scheme}://{endpoint}"
        client_kwargs["endpoint_url"] = endpoint
    if access_key and secret_key:
        client_kwargs["aws_access_key_id"] = access_key
        client_kwargs["aws_secret_access_key"] = secret_key
    return boto3.client("s3", **client_kwargs)


def _error_details(err: ClientError) -> Tuple[str, int, str]:
    code_str = (err.response.get("Error", {}) or {}).get("Code", "") or ""
    status_code = int(
        err.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0
    )
    message = (err.response.get("Error", {}) or {}).get("Message", "") or str(err)
    return str(code_str), status_code, message


def _remote_error(operation: str, err: Exception) -> RemoteCallError:
    if isinstance(err, ClientError):
        code_str, _, message = _error_details(err)
        return RemoteCallError(operation, message, code=code_str or None)
    return RemoteCallError(operation, str(err))


class S3Storage:
    """Exposes the five bucket and version operations the pruner needs.

    Every remote failure leaves this class as one of the structured errors in
    ``s3keep.errors``; callers never see raw botocore exceptions.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    def list_buckets(self) -> List[str]:
        try:
            resp = self.client.list_buckets()
        except (ClientError, BotoCoreError) as err:
            raise _remote_error("ListBuckets", err) from err
        names = [b.get("Name", "") for b in resp.get("Buckets", [])]
        return [n for n in names if n]

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.client.head_bucket(Bucket=bucket)
        except ClientError as err:
            code_str, status_code, _ = _error_details(err)
            if status_code == 404 or code_str in _MISSING_BUCKET_CODES:
                return False
            raise _remote_error("HeadBucket", err) from err
        except BotoCoreError as err:
            raise _remote_error("HeadBucket", err) from err
        return True

    def get_versioning_status(self, bucket: str) -> str:
        """Return the raw versioning status, ``""`` when it was never set."""
        try:
            resp = self.client.get_bucket_versioning(Bucket=bucket)
        except ClientError as err:
            code_str, status_code, _ = _error_details(err)
            if status_code == 301 or code_str in _REGION_MISMATCH_CODES:
                raise RegionAccessError(bucket, code_str) from err
            raise _remote_error("GetBucketVersioning", err) from err
        except BotoCoreError as err:
            raise _remote_error("GetBucketVersioning", err) from err
        return resp.get("Status") or ""

    def list_versions_page(
        self,
        bucket: str,
        prefix: str,
        token: Optional[Tuple[str, str]],
        page_size: int,
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], Optional[Tuple[str, str]]]:
        params: Dict[str, Any] = {
            "Bucket": bucket,
            "Prefix": prefix or "",
            "MaxKeys": page_size,
        }
        if token:
            key_marker, version_marker = token
            params["KeyMarker"] = key_marker
            if version_marker:
                params["VersionIdMarker"] = version_marker
        try:
            resp = self.client.list_object_versions(**params)
        except (ClientError, BotoCoreError) as err:
            raise _remote_error("ListObjectVersions", err) from err

        next_token = None
        next_key = resp.get("NextKeyMarker") or ""
        if next_key:
            next_token = (next_key, resp.get("NextVersionIdMarker") or "")
        return (
            resp.get("Versions", []) or [],
            resp.get("DeleteMarkers", []) or [],
            next_token,
        )

    def delete_versions(self, bucket: str, targets: Sequence[Tuple[str, str]]) -> int:
        objects = [{"Key": key, "VersionId": version_id} for key, version_id in targets]
        try:
            resp = self.client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": objects, "Quiet": False},
            )
        except (ClientError, BotoCoreError) as err:
            raise _remote_error("DeleteObjects", err) from err

        for error in resp.get("Errors", []) or []:
            print(
                f"Failed to delete: {error.get('Key')} "
                f"(VersionId: {error.get('VersionId')}) | "
                f"Code: {error.get('Code')} | Message: {error.get('Message')}"
            )
        return len(resp.get("Deleted", []) or [])

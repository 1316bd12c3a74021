from typing import Optional


class PruneError(Exception):
    """Base class for every error raised while pruning versions."""


class NotFoundError(PruneError):
    def __init__(self, bucket: str) -> None:
        super().__init__(f"Bucket doesn't exist: {bucket}")
        self.bucket = bucket


class RegionAccessError(PruneError):
    """The bucket lives in a region the configured endpoint cannot reach."""

    def __init__(self, bucket: str, code: str = "") -> None:
        super().__init__(
            f"Bucket '{bucket}' is not reachable from the configured region"
            + (f" ({code})" if code else "")
        )
        self.bucket = bucket
        self.code = code


class RemoteCallError(PruneError):
    def __init__(
        self, operation: str, message: str, code: Optional[str] = None
    ) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.code = code

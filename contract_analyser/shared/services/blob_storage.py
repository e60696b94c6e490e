"""
Blob storage for rendered reports and redlined clause artifacts

Blobs are files under ``STORAGE_PATH/<bucket>/<path>``. Signed URLs carry an
expiry timestamp and an HMAC-SHA256 token over ``bucket/path:expires``.
"""

import hashlib
import hmac
import logging
import time
from pathlib import Path
from typing import Iterable, List
from urllib.parse import quote, urlencode

from contract_analyser.shared.core.config import config
from contract_analyser.shared.core.errors import DeliveryError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

REPORTS_BUCKET = "reports"
ARTIFACTS_BUCKET = "contract_artifacts"


class LocalBlobStorage:
    """
    Filesystem-backed blob store with signed URL support
    """

    def __init__(self, root: Path = None, signing_secret: str = None, public_base_url: str = None):
        self.root = Path(root) if root else config.STORAGE_PATH
        self.signing_secret = (signing_secret or config.STORAGE_SIGNING_SECRET).encode("utf-8")
        self.public_base_url = (public_base_url or config.STORAGE_PUBLIC_BASE_URL).rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        if not bucket or not path:
            raise ValidationError("Storage bucket and path are required")
        parts = Path(path).parts
        if Path(path).is_absolute() or ".." in parts or ".." in Path(bucket).parts:
            raise ValidationError(f"Invalid storage path: {path}")
        return self.root / bucket / path

    def put(self, bucket: str, path: str, data: bytes) -> str:
        """Write (or overwrite) a blob and return its path"""
        target = self._resolve(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store blob {bucket}/{path}: {e}")
            raise DeliveryError(f"Failed to store {bucket}/{path}") from e
        logger.info(f"Stored blob {bucket}/{path} ({len(data)} bytes)")
        return path

    def get(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise NotFoundError(f"Blob not found: {bucket}/{path}")
        try:
            return target.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read blob {bucket}/{path}: {e}")
            raise DeliveryError(f"Failed to read {bucket}/{path}") from e

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()

    def delete(self, bucket: str, paths: Iterable[str]) -> List[str]:
        """Delete blobs; missing ones are skipped. Returns the paths actually removed."""
        removed = []
        for path in paths:
            target = self._resolve(bucket, path)
            if not target.is_file():
                continue
            try:
                target.unlink()
            except OSError as e:
                logger.error(f"Failed to delete blob {bucket}/{path}: {e}")
                raise DeliveryError(f"Failed to delete {bucket}/{path}") from e
            removed.append(path)
        return removed

    def _sign(self, bucket: str, path: str, expires: int) -> str:
        message = f"{bucket}/{path}:{expires}".encode("utf-8")
        return hmac.new(self.signing_secret, message, hashlib.sha256).hexdigest()

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{quote(bucket)}/{quote(path)}"

    def create_signed_url(self, bucket: str, path: str, expires_in: int = None, now: float = None) -> str:
        """
        Time-limited URL for a stored blob

        Args:
            bucket: bucket name
            path: blob path inside the bucket
            expires_in: lifetime in seconds (default: SIGNED_URL_TTL_SECONDS)
            now: current UNIX time, for tests

        Raises:
            NotFoundError: blob does not exist
        """
        if not self.exists(bucket, path):
            raise NotFoundError(f"Blob not found: {bucket}/{path}")
        ttl = expires_in if expires_in is not None else config.SIGNED_URL_TTL_SECONDS
        expires = int((now if now is not None else time.time()) + ttl)
        query = urlencode({"expires": expires, "token": self._sign(bucket, path, expires)})
        return f"{self.public_url(bucket, path)}?{query}"

    def verify_signature(self, bucket: str, path: str, expires: int, token: str, now: float = None) -> bool:
        if (now if now is not None else time.time()) > expires:
            return False
        return hmac.compare_digest(self._sign(bucket, path, int(expires)), token or "")


_blob_storage = None


def get_blob_storage() -> LocalBlobStorage:
    """LocalBlobStorage singleton"""
    global _blob_storage
    if _blob_storage is None:
        _blob_storage = LocalBlobStorage()
    return _blob_storage

import hashlib
import re
from pathlib import Path

from loguru import logger

from courtsync.core.exceptions import UploadFailed
from courtsync.schemas.case_record import OrderEntry

UNSAFE_PATH_CHARS = re.compile(r"[^0-9A-Za-z-]+")


def document_path(prefix: str, order: OrderEntry, diary_number: str) -> str:
    """Blob path for an order document: {prefix}/order_{date}_{diary}_{key-hash}.pdf

    The hash of the order's identity key keeps two orders of one case on the
    same date apart.
    """
    date = UNSAFE_PATH_CHARS.sub("_", order.judgment_date).strip("_") or "undated"
    diary = UNSAFE_PATH_CHARS.sub("_", diary_number).strip("_") or "unknown"
    digest = hashlib.sha1(order.identity_key.encode("utf-8")).hexdigest()[:12]
    return f"{prefix.strip('/')}/order_{date}_{diary}_{digest}.pdf"


class LocalBlobStore:
    """Blob store on the local filesystem; references are paths relative to root"""

    def __init__(self, root: str):
        self.root = Path(root)

    def upload(self, data: bytes, path: str) -> str:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise UploadFailed(f"Refusing to write outside the blob root: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Error uploading {path}: {str(e)}")
            raise UploadFailed(f"Could not store {path}: {e}") from e
        logger.info(f"Stored document {path} ({len(data)} bytes)")
        return path

"""Content-addressed image storage on the local filesystem."""
import base64
import binascii
import hashlib
import logging
import re
from pathlib import Path
from typing import Tuple, Union

from sortwise.domain.exceptions import ImageStoreError
from sortwise.domain.interfaces import ImageRef, ImageStore

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.S)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def decode_data_uri(uri: str) -> Tuple[bytes, str]:
    """
    Decode a base64 ``data:`` URI into (bytes, content type).

    Raises:
        ImageStoreError: if the string is not a base64 data URI
    """
    m = _DATA_URI.match(uri.strip())
    if not m:
        raise ImageStoreError("Not a base64 data URI").add_suggestion(
            "Pass raw image bytes or a 'data:image/...;base64,' string"
        )
    try:
        data = base64.b64decode(m.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageStoreError(f"Invalid base64 payload: {e}") from e
    return data, m.group("type") or "application/octet-stream"


class LocalImageStore(ImageStore):
    """Writes each image once, named by the sha256 of its bytes."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()

    def upload(self, data: Union[bytes, str]) -> ImageRef:
        if isinstance(data, str):
            payload, content_type = decode_data_uri(data)
        elif isinstance(data, (bytes, bytearray)):
            payload, content_type = bytes(data), "application/octet-stream"
        else:
            raise ImageStoreError(f"Unsupported image payload type: {type(data).__name__}")

        if not payload:
            raise ImageStoreError("Empty image payload")

        digest = hashlib.sha256(payload).hexdigest()
        path = self.root / digest[:2] / f"{digest}{_EXTENSIONS.get(content_type, '.bin')}"

        try:
            if not path.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(payload)
                logger.debug("stored image %s (%d bytes)", path.name, len(payload))
        except OSError as e:
            raise ImageStoreError(f"Cannot write image: {e}", image_ref=str(path)) from e

        return ImageRef(
            url=path.resolve().as_uri(),
            sha256=digest,
            size_bytes=len(payload),
            content_type=content_type,
        )

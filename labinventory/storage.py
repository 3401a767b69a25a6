"""Component image storage.

Images live in an external object store; the database only keeps the secure
URL the store hands back. Deleting an image needs the store's own identifier
(``public_id``), which is recovered from that URL.
"""
import io
import logging
import re
from typing import Optional, Protocol

import cloudinary.exceptions
import cloudinary.uploader

from labinventory.config import Settings
from labinventory.error import StorageError

logger = logging.getLogger(__name__)

UPLOAD_MARKER = "upload"
_EXTENSION = re.compile(r"\.[^/.]+$")
_VERSION = re.compile(r"^v\d+$")


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """Derive the object-store identifier from a stored asset URL.

    ``https://res.cloudinary.com/demo/image/upload/v1700000000/inventario/abc.png``
    gives ``inventario/abc``; a leading version segment is not part of the id.
    Returns ``None`` when there is no URL or when the ``upload`` segment is
    missing, meaning there is nothing to delete.
    """
    if not url:
        return None

    parts = url.split("/")
    filename = parts.pop()
    if UPLOAD_MARKER not in parts:
        return None

    folder_parts = parts[parts.index(UPLOAD_MARKER) + 1:]
    if folder_parts and _VERSION.match(folder_parts[0]):
        folder_parts = folder_parts[1:]
    folder = "/".join(folder_parts)
    public_id = f"{folder}/{filename}" if folder else filename
    return _EXTENSION.sub("", public_id)


class ObjectStore(Protocol):
    def upload(self, data: bytes, folder: str) -> str: ...

    def delete(self, public_id: str) -> None: ...


class CloudinaryStore:
    def __init__(self, cloud_name: Optional[str], api_key: Optional[str], api_secret: Optional[str]):
        options = {"cloud_name": cloud_name, "api_key": api_key, "api_secret": api_secret}
        # unset values fall back to the SDK's own config (CLOUDINARY_URL)
        self._options = {k: v for k, v in options.items() if v}
        self._options["secure"] = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryStore":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
        )

    def upload(self, data: bytes, folder: str) -> str:
        # the SDK raises ValueError for missing credentials
        try:
            result = cloudinary.uploader.upload(io.BytesIO(data), folder=folder, **self._options)
        except (cloudinary.exceptions.Error, ValueError) as exc:
            raise StorageError(f"upload failed: {exc}") from exc
        return result["secure_url"]

    def delete(self, public_id: str) -> None:
        try:
            result = cloudinary.uploader.destroy(public_id, **self._options)
        except (cloudinary.exceptions.Error, ValueError) as exc:
            raise StorageError(f"delete of {public_id} failed: {exc}") from exc
        if result.get("result") != "ok":
            logger.warning("object store did not delete %s: %s", public_id, result.get("result"))

# Overview: Object storage for product images (bucket addressed {product_id}/{file_name}).

from __future__ import annotations

import base64
import binascii
from pathlib import Path

from flask import current_app

from ..errors import StorageError, ValidationError


ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024


def decode_image_payload(data: str) -> bytes:
    """Decode a base64 image body; accepts a bare string or a data: URL."""
    if not isinstance(data, str) or not data.strip():
        raise ValidationError("image data is required")
    body = data.strip()
    if body.startswith("data:"):
        _, _, body = body.partition(",")
    try:
        content = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("image data must be base64 encoded")
    if not content:
        raise ValidationError("image data is empty")
    if len(content) > MAX_IMAGE_BYTES:
        raise ValidationError(f"image exceeds {MAX_IMAGE_BYTES} bytes")
    return content


def _safe_file_name(file_name: str) -> str:
    name = str(file_name or "").strip()
    if not name or name in {".", ".."} or "/" in name or "\\" in name:
        raise ValidationError("file_name must be a plain file name")
    if Path(name).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"file_name must end with one of: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    return name


class ImageStorage:
    """Interface for the product image bucket."""

    def upload(self, product_id: int, file_name: str, content: bytes) -> str:
        raise NotImplementedError

    def remove(self, public_url: str) -> None:
        raise NotImplementedError


class LocalImageStorage(ImageStorage):
    """Bucket backed by a directory; public URLs are served under base_url."""

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def object_path(self, product_id: int, file_name: str) -> str:
        return f"{int(product_id)}/{_safe_file_name(file_name)}"

    def upload(self, product_id: int, file_name: str, content: bytes) -> str:
        key = self.object_path(product_id, file_name)
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Image upload failed: {exc.strerror or exc}")
        return f"{self.base_url}/{key}"

    def remove(self, public_url: str) -> None:
        prefix = f"{self.base_url}/"
        if not public_url or not public_url.startswith(prefix):
            return
        key = public_url[len(prefix):]
        target = (self.root / key).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError("Refusing to remove an object outside the bucket")
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Image removal failed: {exc.strerror or exc}")


def get_image_storage() -> ImageStorage:
    """Storage bound to the current app (tests may set app.extensions['image_storage'])."""
    storage = current_app.extensions.get("image_storage")
    if storage is None:
        root = Path(current_app.config["IMAGE_STORAGE_ROOT"])
        if not root.is_absolute():
            root = Path(current_app.root_path).parent / root
        storage = LocalImageStorage(root, current_app.config["IMAGE_PUBLIC_BASE_URL"])
        current_app.extensions["image_storage"] = storage
    return storage

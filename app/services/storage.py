"""Listing images on local disk under UPLOAD_DIR."""
import secrets
from pathlib import Path

from fastapi import UploadFile

from app.exceptions import FormValidationError

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class ImageStorage:
    def __init__(self, upload_dir: str | Path, max_bytes: int = 1_000_000):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def path_for(self, filename: str) -> Path:
        # Stored names are generated here; refuse anything that escapes the folder
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir.resolve():
            raise ValueError(f"invalid image name: {filename!r}")
        return path

    def save(self, upload: UploadFile) -> str:
        """Validate and store an upload; returns the generated file name."""
        ext = ALLOWED_IMAGE_TYPES.get((upload.content_type or "").lower())
        if not ext:
            raise FormValidationError([{"field": "imagen", "msg": "Upload a JPG, PNG or WebP image"}])
        content = upload.file.read(self.max_bytes + 1)
        if not content:
            raise FormValidationError([{"field": "imagen", "msg": "The image is empty"}])
        if len(content) > self.max_bytes:
            raise FormValidationError([{"field": "imagen", "msg": "The image is too large"}])
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        filename = secrets.token_hex(16) + ext
        self.path_for(filename).write_bytes(content)
        return filename

    def delete(self, filename: str) -> bool:
        """Remove a stored image. False if it was already gone; other OS errors propagate."""
        if not filename:
            return False
        try:
            self.path_for(filename).unlink()
        except FileNotFoundError:
            return False
        return True

    def exists(self, filename: str) -> bool:
        return bool(filename) and self.path_for(filename).is_file()

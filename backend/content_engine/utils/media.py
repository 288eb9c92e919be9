import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from content_engine.domain.invariants.exceptions import InvariantViolation

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "svg"}


def allowed_file(filename):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_IMAGE_EXTENSIONS


class LocalBlobStorage:
    """
    Blob storage on local disk. put() returns the public URL of the blob;
    the bytes are never inspected.
    """

    def __init__(self, folder, base_url):
        self.folder = folder
        self.base_url = base_url.rstrip("/")

    def put(self, key: str, data: bytes) -> str:
        os.makedirs(self.folder, exist_ok=True)
        with open(os.path.join(self.folder, key), "wb") as handle:
            handle.write(data)
        return f"{self.base_url}/{key}"


def blob_storage():
    storage = current_app.extensions.get("blob_storage")
    if storage is None:
        storage = LocalBlobStorage(
            current_app.config.get("UPLOAD_FOLDER", "uploads"),
            current_app.config.get("BLOB_BASE_URL", "/uploads"),
        )
        current_app.extensions["blob_storage"] = storage
    return storage


def save_image(file) -> str:
    """Store an uploaded image and return its URL for imageRef."""
    filename = secure_filename(file.filename or "")
    if not allowed_file(filename):
        raise InvariantViolation("File type not allowed", reason="invalid_image")

    data = file.read()
    if len(data) > current_app.config.get("MAX_UPLOAD_BYTES", 4_500_000):
        raise InvariantViolation("Image exceeds the upload size limit", reason="image_too_large")

    ext = filename.rsplit(".", 1)[1].lower()
    url = blob_storage().put(f"{uuid.uuid4().hex}.{ext}", data)
    current_app.logger.info("media.save bytes=%d url=%s", len(data), url)
    return url

"""
Asset upload collaborator.

Registration and the avatar / cover-image updates hand an uploaded file to
an AssetUploader and persist only the URL it returns. A None result means
the upload did not happen.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp"})


@dataclass(frozen=True)
class UploadedAsset:
    url: str
    filename: str


class AssetUploader:
    def upload(self, file: FileStorage | None) -> UploadedAsset | None:
        raise NotImplementedError


class LocalAssetUploader(AssetUploader):
    """Stores files under `folder` and serves them from `base_url`."""

    def __init__(self, folder: str, base_url: str = "/uploads", allowed_extensions=IMAGE_EXTENSIONS):
        self.folder = folder
        self.base_url = base_url.rstrip("/")
        self.allowed_extensions = frozenset(e.lower() for e in allowed_extensions)

    def _allowed(self, filename: str) -> bool:
        return "." in filename and filename.rsplit(".", 1)[1].lower() in self.allowed_extensions

    def upload(self, file: FileStorage | None) -> UploadedAsset | None:
        if file is None or not file.filename:
            return None
        name = secure_filename(file.filename)
        if not name or not self._allowed(name):
            logger.info("rejected upload %r: unsupported file type", file.filename)
            return None

        stored = f"{uuid.uuid4().hex}_{name}"
        try:
            os.makedirs(self.folder, exist_ok=True)
            file.save(os.path.join(self.folder, stored))
        except OSError:
            logger.exception("could not store upload %s", stored)
            return None
        logger.info("file uploaded as %s", stored)
        return UploadedAsset(url=f"{self.base_url}/{stored}", filename=stored)

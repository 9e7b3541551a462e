from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..core.constants import ALLOWED_IMAGE_EXTENSIONS, DEFAULT_MAX_IMAGE_BYTES
from ..core.exceptions import NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/profile_images"


class ProfileImageService:
    """Stores uploaded profile pictures under ``<upload_folder>/profile_images``."""

    def __init__(self, users: UserRepository, upload_folder: str | Path, *, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES):
        self._users = users
        self._folder = Path(upload_folder) / "profile_images"
        self._max_bytes = max_bytes

    @property
    def folder(self) -> Path:
        return self._folder

    def _validate(self, file: Optional[FileStorage]) -> tuple[str, bytes]:
        if file is None or not file.filename:
            raise ValidationError.for_field("profile_image", "The profile image field is required.")

        name = secure_filename(file.filename)
        ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
        if ext not in ALLOWED_IMAGE_EXTENSIONS:
            raise ValidationError.for_field(
                "profile_image",
                f"The profile image must be a file of type: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}.",
            )

        content = file.read(self._max_bytes + 1)
        if len(content) > self._max_bytes:
            raise ValidationError.for_field(
                "profile_image",
                f"The profile image may not be greater than {self._max_bytes // 1024} kilobytes.",
            )
        return ext, content

    def upload(self, user_id: int, file: Optional[FileStorage]) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")

        ext, content = self._validate(file)
        self._folder.mkdir(parents=True, exist_ok=True)
        filename = f"{user_id}_{secrets.token_hex(8)}.{ext}"
        stored = self._folder / filename
        stored.write_bytes(content)

        try:
            updated = self._users.update(user_id, {"profile_image": f"{PUBLIC_PREFIX}/{filename}"})
        except Exception:
            stored.unlink(missing_ok=True)
            raise
        self._remove(user.profile_image)
        logger.info("Stored profile image %s for user %s", filename, user_id)
        return updated or user

    def remove(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        updated = self._users.update(user_id, {"profile_image": None})
        self._remove(user.profile_image)
        return updated or user

    def _remove(self, public_path: Optional[str]) -> None:
        if not public_path or not public_path.startswith(PUBLIC_PREFIX + "/"):
            return
        old = self._folder / Path(public_path).name
        if old.is_file():
            old.unlink()

from __future__ import annotations

import io

import pytest
from werkzeug.datastructures import FileStorage

from src.hr_portal.hr_portal.core.exceptions import NotFoundError, ValidationError
from src.hr_portal.hr_portal.users.images import PUBLIC_PREFIX

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(content: bytes, filename: str) -> FileStorage:
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type="application/octet-stream")


def test_upload_stores_file_and_updates_user(container, people):
    images = container.profile_image_service
    alice = people["alice"]

    user = images.upload(alice.id, _upload(PNG, "me.png"))

    assert user.profile_image.startswith(f"{PUBLIC_PREFIX}/{alice.id}_")
    stored = images.folder / user.profile_image.rsplit("/", 1)[-1]
    assert stored.read_bytes() == PNG


def test_replacing_image_removes_the_old_file(container, people):
    images = container.profile_image_service
    alice = people["alice"]

    first = images.upload(alice.id, _upload(PNG, "a.png"))
    old_file = images.folder / first.profile_image.rsplit("/", 1)[-1]
    second = images.upload(alice.id, _upload(PNG, "b.jpg"))

    assert not old_file.exists()
    assert second.profile_image.endswith(".jpg")


def test_failed_save_keeps_the_old_file(container, people, monkeypatch):
    images = container.profile_image_service
    alice = people["alice"]
    first = images.upload(alice.id, _upload(PNG, "a.png"))
    old_file = images.folder / first.profile_image.rsplit("/", 1)[-1]

    def broken_update(user_id, changes):
        raise RuntimeError("database went away")

    monkeypatch.setattr(container.users_repo, "update", broken_update)
    with pytest.raises(RuntimeError):
        images.upload(alice.id, _upload(PNG, "b.png"))

    assert old_file.exists()
    assert [p.name for p in images.folder.iterdir()] == [old_file.name]
    assert container.users_repo.get_by_id(alice.id).profile_image == first.profile_image


def test_remove_clears_image(container, people):
    images = container.profile_image_service
    alice = people["alice"]
    uploaded = images.upload(alice.id, _upload(PNG, "a.png"))

    user = images.remove(alice.id)

    assert user.profile_image is None
    assert not (images.folder / uploaded.profile_image.rsplit("/", 1)[-1]).exists()


@pytest.mark.parametrize(
    "file, message",
    [
        (None, "The profile image field is required."),
        (_upload(PNG, "notes.txt"), "The profile image must be a file of type: jpeg, jpg, png, webp."),
        (_upload(b"x" * 2048, "big.png"), "The profile image may not be greater than 1 kilobytes."),
    ],
)
def test_upload_validation(container, people, file, message):
    with pytest.raises(ValidationError) as exc:
        container.profile_image_service.upload(people["alice"].id, file)
    assert exc.value.errors == {"profile_image": [message]}


def test_upload_for_missing_user(container):
    with pytest.raises(NotFoundError):
        container.profile_image_service.upload(42, _upload(PNG, "a.png"))

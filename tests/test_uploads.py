import io
import re

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from errors import UploadError
from uploads import build_filename, image_extension, save_image


def make_upload(filename, content_type, content=b"data"):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.parametrize("content_type,extension", [
    ("image/png", "png"),
    ("image/jpeg", "jpeg"),
    ("image/jpg", "jpg"),
])
def test_allowed_types(content_type, extension):
    assert image_extension(make_upload("a", content_type)) == extension


def test_rejects_other_types():
    with pytest.raises(UploadError) as exc:
        image_extension(make_upload("a.gif", "image/gif"))
    assert exc.value.detail == "Invalid image type!"


def test_build_filename_collapses_whitespace():
    assert build_filename("my  summer\tphoto.png", "png", 1700000000000) == "my-summer-photo.png-1700000000000.png"


def test_build_filename_drops_directories():
    assert build_filename("../../etc/pic.jpg", "jpg", 1) == "pic.jpg-1.jpg"


def test_save_image_writes_bytes(tmp_path):
    filename = save_image(make_upload("cat.png", "image/png", b"meow"), str(tmp_path))
    assert re.fullmatch(r"cat\.png-\d{13}\.png", filename)
    assert (tmp_path / filename).read_bytes() == b"meow"


def test_same_name_uploads_do_not_collide(tmp_path, monkeypatch):
    monkeypatch.setattr("uploads.time.time", lambda: 1700000000.0)
    first = save_image(make_upload("dup.png", "image/png", b"one"), str(tmp_path))
    second = save_image(make_upload("dup.png", "image/png", b"two"), str(tmp_path))
    assert first != second
    assert (tmp_path / first).read_bytes() == b"one"
    assert (tmp_path / second).read_bytes() == b"two"


def test_rejected_type_writes_nothing(tmp_path):
    target = tmp_path / "uploads"
    with pytest.raises(UploadError):
        save_image(make_upload("notes.txt", "text/plain"), str(target))
    assert not target.exists()

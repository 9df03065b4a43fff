import io
import os
from types import SimpleNamespace

import pytest

from serviceconnect.core.config import get_settings
from serviceconnect.core.errors import ValidationError
from serviceconnect.utils.uploads import IMAGE_OR_PDF_TYPES, IMAGE_TYPES, discard_upload, save_upload


class _FailingStream:
    def __init__(self):
        self.calls = 0

    def read(self, size):
        self.calls += 1
        if self.calls == 1:
            return b"partial"
        raise OSError("connection reset")


def _upload(data=b"\x89PNG", filename="photo.png", content_type="image/png", stream=None):
    return SimpleNamespace(filename=filename, content_type=content_type, file=stream or io.BytesIO(data))


def _files():
    upload_dir = get_settings().upload_dir
    return set(os.listdir(upload_dir)) if os.path.isdir(upload_dir) else set()


def test_save_and_discard_round_trip():
    url = save_upload(_upload(), 42, IMAGE_TYPES, "missing")
    name = url.rsplit("/", 1)[1]

    assert url.startswith(f"{get_settings().public_base_url}/uploads/42-")
    assert name in _files()

    discard_upload(url)
    assert name not in _files()
    discard_upload(url)
    discard_upload(None)


def test_missing_and_disallowed_files():
    with pytest.raises(ValidationError) as exc:
        save_upload(None, 1, IMAGE_TYPES, "Screenshot proof is required.")
    assert exc.value.message == "Screenshot proof is required."

    with pytest.raises(ValidationError):
        save_upload(_upload(filename="a.pdf", content_type="application/pdf"), 1, IMAGE_TYPES, "missing")
    save_upload(_upload(filename="a.pdf", content_type="application/pdf"), 1, IMAGE_OR_PDF_TYPES, "missing")


def test_size_ceiling_removes_partial_file(monkeypatch):
    monkeypatch.setattr(get_settings(), "upload_max_bytes", 8)
    before = _files()

    with pytest.raises(ValidationError):
        save_upload(_upload(data=b"x" * 9), 1, IMAGE_TYPES, "missing")

    assert _files() == before


def test_write_error_removes_partial_file():
    before = _files()

    with pytest.raises(OSError):
        save_upload(_upload(stream=_FailingStream()), 1, IMAGE_TYPES, "missing")

    assert _files() == before

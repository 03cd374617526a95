import os

import pytest

from src.storage import LocalFileStorage, StorageError


@pytest.fixture
def local_storage(tmp_path):
    return LocalFileStorage(str(tmp_path), "/static/uploads/")


def test_upload_writes_file(local_storage, tmp_path):
    url = local_storage.upload(b"license", "Giấy phép kinh doanh.pdf", "licenses")

    assert url.startswith("/static/uploads/licenses/")
    assert url.endswith(".pdf")
    public_id = local_storage.extract_public_id(url)
    with open(os.path.join(tmp_path, public_id), "rb") as fh:
        assert fh.read() == b"license"


def test_upload_rejects_empty_file(local_storage):
    with pytest.raises(StorageError):
        local_storage.upload(b"", "empty.pdf", "licenses")


def test_delete(local_storage):
    url = local_storage.upload(b"license", "license.pdf", "licenses")
    public_id = local_storage.extract_public_id(url)

    assert local_storage.delete(public_id) is True
    assert local_storage.delete(public_id) is False


def test_extract_public_id_foreign_url(local_storage):
    assert local_storage.extract_public_id("https://res.cloudinary.com/x/license.pdf") is None
    assert local_storage.extract_public_id("") is None


def test_public_id_cannot_escape_root(local_storage):
    with pytest.raises(StorageError):
        local_storage.delete("../../etc/passwd")

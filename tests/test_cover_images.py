import logging
import os

import boto3
import pytest
from botocore.stub import ANY, Stubber

from horizon_library.core.errors import StorageError, UploadTooLargeError, ValidationError
from horizon_library.services.cover_images import CoverImageManager, CoverUpload
from horizon_library.services.file_storage import LocalFileStorage, S3FileStorage


@pytest.mark.parametrize(
    "current,new_ref,clear,expected",
    [
        ("/uploads/old.png", "/uploads/new.png", False, ("/uploads/new.png", "/uploads/old.png")),
        ("/uploads/old.png", "/uploads/new.png", True, ("/uploads/new.png", "/uploads/old.png")),
        (None, "/uploads/new.png", False, ("/uploads/new.png", None)),
        ("/uploads/same.png", "/uploads/same.png", False, ("/uploads/same.png", None)),
        ("/uploads/old.png", None, True, (None, "/uploads/old.png")),
        (None, None, True, (None, None)),
        ("/uploads/old.png", None, False, ("/uploads/old.png", None)),
    ],
)
def test_resolve(current, new_ref, clear, expected):
    assert CoverImageManager.resolve(current, new_ref, clear) == expected


def test_stage_checks_upload(storage):
    covers = CoverImageManager(storage, max_size_mb=1)
    assert covers.stage(None) is None
    assert covers.stage(CoverUpload(data=b"", filename="empty.png")) is None
    with pytest.raises(ValidationError):
        covers.stage(CoverUpload(data=b"x", filename="script.sh"))
    with pytest.raises(UploadTooLargeError):
        covers.stage(CoverUpload(data=b"x" * (1024 * 1024 + 1), filename="big.png"))
    assert os.listdir(storage.directory) == []

    ref = covers.stage(CoverUpload(data=b"img", filename="Cover.PNG"))
    assert ref.startswith("/uploads/") and ref.endswith(".png")


def test_release_failure_is_only_a_warning(storage, caplog):
    covers = CoverImageManager(storage)
    with caplog.at_level(logging.WARNING, logger="horizon_library.services.cover_images"):
        covers.release("/uploads/already-gone.png")
    assert "already-gone.png" in caplog.text


def test_release_none_is_noop(storage):
    CoverImageManager(storage).release(None)


def test_local_storage_round_trip(storage):
    ref = storage.store(b"abc", "photo.jpeg")
    path = storage.path_for(ref)
    assert os.path.exists(path)
    storage.delete(ref)
    assert not os.path.exists(path)
    with pytest.raises(StorageError):
        storage.delete(ref)


@pytest.mark.parametrize("ref", ["/elsewhere/x.png", "/uploads/../secret", "/uploads/"])
def test_local_storage_rejects_foreign_references(storage, ref):
    with pytest.raises(StorageError):
        storage.path_for(ref)


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_s3_storage(s3_client):
    storage = S3FileStorage(s3_client, "covers-bucket", "https://cdn.example.com/")
    with Stubber(s3_client) as stub:
        stub.add_response("put_object", {}, {"Bucket": "covers-bucket", "Key": ANY, "Body": b"img"})
        ref = storage.store(b"img", "a.png")
        assert ref.startswith("https://cdn.example.com/covers/")
        assert ref.endswith(".png")

        stub.add_response("delete_object", {}, {"Bucket": "covers-bucket", "Key": storage.key_for(ref)})
        storage.delete(ref)
        stub.assert_no_pending_responses()


def test_s3_delete_failure_becomes_storage_error(s3_client):
    storage = S3FileStorage(s3_client, "covers-bucket", "https://cdn.example.com")
    with Stubber(s3_client) as stub:
        stub.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StorageError):
            storage.delete("https://cdn.example.com/covers/x.png")

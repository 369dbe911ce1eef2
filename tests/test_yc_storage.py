import pytest

from conftest import StubObjectStorage
from yc_function_deploy.errors import MissingRevisionError, UploadError
from yc_function_deploy.yc_storage import object_name_for, stage_artifact


def test_object_name_is_function_and_revision() -> None:
    assert object_name_for("fn-1", "abc123") == "fn-1/abc123.zip"


def test_stage_artifact_puts_object(reporter, storage) -> None:  # noqa: ANN001
    ref = stage_artifact(storage, reporter, "my-bucket", "fn-1", "abc123", b"zip")

    assert ref.bucket == "my-bucket"
    assert ref.object_name == "fn-1/abc123.zip"
    assert storage.objects == {("my-bucket", "fn-1/abc123.zip"): b"zip"}


def test_stage_artifact_same_revision_overwrites(reporter, storage) -> None:  # noqa: ANN001
    stage_artifact(storage, reporter, "my-bucket", "fn-1", "abc123", b"v1")
    stage_artifact(storage, reporter, "my-bucket", "fn-1", "abc123", b"v2")

    assert storage.objects == {("my-bucket", "fn-1/abc123.zip"): b"v2"}


def test_stage_artifact_requires_revision(reporter, storage) -> None:  # noqa: ANN001
    with pytest.raises(MissingRevisionError):
        stage_artifact(storage, reporter, "my-bucket", "fn-1", "", b"zip")

    assert storage.objects == {}


def test_stage_artifact_propagates_upload_error(reporter) -> None:  # noqa: ANN001
    storage = StubObjectStorage(error=UploadError("403 Forbidden"))

    with pytest.raises(UploadError):
        stage_artifact(storage, reporter, "my-bucket", "fn-1", "abc123", b"zip")

"""
yc_storage
----------

빌드 아카이브를 Object Storage 버킷에 스테이징하는 모듈.
오브젝트 키는 ``<functionId>/<revision>.zip`` 으로 고정되어
같은 함수/리비전 재실행 시 덮어쓴다.
"""

from __future__ import annotations

from .clients import ObjectStorage
from .errors import MissingRevisionError
from .logging_utils import get_logger
from .models import StagingReference
from .reporter import Reporter


logger = get_logger(__name__)


def object_name_for(function_id: str, revision: str) -> str:
    return f"{function_id}/{revision}.zip"


def stage_artifact(
    storage: ObjectStorage,
    reporter: Reporter,
    bucket: str,
    function_id: str,
    revision: str,
    content: bytes,
) -> StagingReference:
    if not revision:
        raise MissingRevisionError("Missing GITHUB_SHA")

    ref = StagingReference(bucket=bucket, object_name=object_name_for(function_id, revision))
    reporter.info(f'Upload to bucket: "{ref}"')
    storage.put_object(ref.bucket, ref.object_name, content)
    return ref

"""
errors
------

배포 과정에서 발생하는 예외 계층.
모든 예외는 실행 단위로 치명적이며, 로컬 재시도나 복구는 하지 않는다.
"""

from __future__ import annotations

from typing import List, Optional


class DeployError(Exception):
    """배포 실패의 공통 베이스."""


class InputError(DeployError):
    """필수 입력값(설정/컨텍스트)이 없거나 잘못되었다."""


class MissingRevisionError(InputError):
    """스테이징 오브젝트 키에 사용할 소스 리비전(GITHUB_SHA)이 없다."""


class ArchiveError(DeployError):
    """아카이브 생성(파일시스템/압축) 실패."""


class IncludePathNotFoundError(ArchiveError, FileNotFoundError):
    def __init__(self, path: str) -> None:
        super().__init__(f"include 경로가 존재하지 않습니다: {path}")
        self.path = path


class EmptyArchiveError(ArchiveError):
    pass


class RemoteAPIError(DeployError):
    """원격 API 호출 자체(전송/인증)가 실패했다."""


class UploadError(RemoteAPIError):
    pass


class RemoteOperationError(DeployError):
    """
    원격 operation 이 error 필드를 가진 채 완료되었다.

    메시지는 ``CODE: message`` 형식이며, details 가 있으면
    ``CODE: message (d1, d2)`` 처럼 뒤에 붙인다.
    """

    def __init__(self, code: str, message: str, details: Optional[List[str]] = None) -> None:
        self.code = code
        self.remote_message = message
        self.details = list(details or [])
        text = f"{code}: {message}"
        if self.details:
            text += f" ({', '.join(self.details)})"
        super().__init__(text)


class MissingMetadataError(DeployError):
    """operation 은 성공했지만 기대한 metadata 가 없다."""


class CreationFailedError(MissingMetadataError):
    pass

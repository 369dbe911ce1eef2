from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class FunctionSummary:
    id: str
    name: str
    folder_id: str = ""


@dataclass(frozen=True)
class FunctionHandle:
    id: str
    name: str
    folder_id: str
    # 이번 실행에서 새로 만든 함수인지 (로그 용도, 이후 단계는 id 만 사용)
    created: bool = False


@dataclass(frozen=True)
class StagingReference:
    bucket: str
    object_name: str

    def __str__(self) -> str:
        return f"{self.bucket}/{self.object_name}"


@dataclass
class VersionRequest:
    """
    함수 버전 생성 요청.
    content(인라인 바이트)와 package(스테이징 오브젝트) 중 정확히 하나만 채운다.
    """

    function_id: str
    runtime: str
    entrypoint: str
    memory: int
    execution_timeout: int
    service_account_id: str = ""
    description: str = ""
    environment: Dict[str, str] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    content: Optional[bytes] = None
    package: Optional[StagingReference] = None


@dataclass(frozen=True)
class VersionResult:
    function_id: str
    version_id: str
    time: str = ""

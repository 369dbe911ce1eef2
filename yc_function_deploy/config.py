from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .errors import InputError


ENV_FILES_DEFAULT_ORDER = [".env", ".env.deploy", ".env.secrets"]

KB = 1024
MB = 1024 * KB
GB = 1024 * MB

DEFAULT_MEMORY = "128Mb"
DEFAULT_EXECUTION_TIMEOUT = "5"
DEFAULT_INCLUDE = ["."]

_MEMORY_UNITS = {"b": 1, "kb": KB, "mb": MB, "gb": GB}
_MEMORY_RE = re.compile(r"^\s*(\d+)\s*([a-z]*)\s*$", re.IGNORECASE)


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def parse_memory(raw: str) -> int:
    """
    ``128Mb``, ``1Gb``, ``512 kb`` 같은 문자열을 바이트 수로 변환한다.
    단위가 없으면 바이트로 본다.
    """
    match = _MEMORY_RE.match(raw or "")
    if not match:
        raise InputError(f"memory 값 형식이 잘못되었습니다: {raw!r} (예: 128Mb)")
    amount, unit = match.groups()
    unit = (unit or "b").lower()
    if unit not in _MEMORY_UNITS:
        raise InputError(f"지원하지 않는 memory 단위입니다: {unit!r} (b, kb, mb, gb)")
    return int(amount) * _MEMORY_UNITS[unit]


def parse_multiline(raw: Optional[str]) -> List[str]:
    """여러 줄 입력을 줄 단위 리스트로 바꾼다. 빈 줄은 버린다."""
    if not raw:
        return []
    return [line.strip() for line in raw.splitlines() if line.strip()]


def _parse_positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise InputError(f"{name} 는 정수여야 합니다: {raw!r}") from e
    if value <= 0:
        raise InputError(f"{name} 는 0보다 커야 합니다: {value}")
    return value


@dataclass(frozen=True)
class DeploymentConfig:
    # 필수
    folder_id: str
    function_name: str
    runtime: str
    entrypoint: str

    memory: int = 128 * MB
    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: List[str] = field(default_factory=list)
    execution_timeout: int = 5
    environment: List[str] = field(default_factory=list)
    service_account: str = ""
    bucket: str = ""
    description: str = ""
    tags: List[str] = field(default_factory=list)

    # CI 컨텍스트
    revision: str = ""
    repository: str = ""

    def __post_init__(self) -> None:
        if not self.function_name:
            raise InputError("function_name 은 비어 있을 수 없습니다.")
        if self.memory <= 0:
            raise InputError(f"memory 는 0보다 커야 합니다: {self.memory}")
        if self.execution_timeout <= 0:
            raise InputError(
                f"execution_timeout 은 0보다 커야 합니다: {self.execution_timeout}"
            )

    @property
    def staged(self) -> bool:
        return bool(self.bucket)

    @classmethod
    def from_env(cls) -> "DeploymentConfig":
        missing: List[str] = []

        def req(name: str) -> str:
            val = os.getenv(name)
            if not val:
                missing.append(name)
            return val or ""

        folder_id = req("FOLDER_ID")
        function_name = req("FUNCTION_NAME")
        runtime = req("RUNTIME")
        entrypoint = req("ENTRYPOINT")

        if missing:
            raise InputError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        return cls(
            folder_id=folder_id,
            function_name=function_name,
            runtime=runtime,
            entrypoint=entrypoint,
            memory=parse_memory(os.getenv("MEMORY") or DEFAULT_MEMORY),
            include=parse_multiline(os.getenv("INCLUDE")) or list(DEFAULT_INCLUDE),
            exclude=parse_multiline(os.getenv("EXCLUDE")),
            execution_timeout=_parse_positive_int(
                "EXECUTION_TIMEOUT",
                os.getenv("EXECUTION_TIMEOUT") or DEFAULT_EXECUTION_TIMEOUT,
            ),
            environment=parse_multiline(os.getenv("ENVIRONMENT")),
            service_account=os.getenv("SERVICE_ACCOUNT", ""),
            bucket=os.getenv("BUCKET", ""),
            description=os.getenv("DESCRIPTION", ""),
            tags=parse_multiline(os.getenv("TAGS")),
            revision=os.getenv("GITHUB_SHA", ""),
            repository=os.getenv("GITHUB_REPOSITORY", ""),
        )


def load_credentials_json() -> str:
    raw = os.getenv("YC_SA_JSON_CREDENTIALS", "")
    if not raw.strip():
        raise InputError("필수 환경변수가 누락되었습니다: YC_SA_JSON_CREDENTIALS")
    return raw

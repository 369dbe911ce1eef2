"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 yc_function_deploy 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.
원격 서비스 stub 과 기록용 Reporter 도 여기서 제공한다.
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


class RecordingReporter:
    def __init__(self) -> None:
        self.messages: List[str] = []
        self.groups: List[str] = []
        self.masked: List[str] = []
        self.outputs: Dict[str, str] = {}
        self.failures: List[str] = []

    def info(self, message: str) -> None:
        self.messages.append(message)

    def warning(self, message: str) -> None:
        self.messages.append(f"warning: {message}")

    def error(self, message: str) -> None:
        self.messages.append(f"error: {message}")

    @contextmanager
    def group(self, title: str) -> Iterator[None]:
        self.groups.append(title)
        yield

    def mask(self, secret: str) -> None:
        self.masked.append(secret)

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value

    def set_failed(self, message: str) -> None:
        self.failures.append(message)


class StubFunctionService:
    """
    list/create/create_version/wait 호출을 기록하는 FunctionService stub.

    list_results 는 list_functions 호출마다 순서대로 꺼내 쓴다.
    """

    def __init__(
        self,
        list_results: Optional[List[list]] = None,
        create_result=None,  # noqa: ANN001
        version_result=None,  # noqa: ANN001
    ) -> None:
        from yc_function_deploy.operations import CompletedOperation

        self.list_results = list(list_results or [[]])
        self.create_result = create_result or CompletedOperation(
            id="op-create", metadata={"function_id": "fn-new"}
        )
        self.version_result = version_result or CompletedOperation(
            id="op-version", metadata={"function_id": "fn-new", "function_version_id": "ver-1"}
        )
        self.calls: List[tuple] = []
        self.version_requests: list = []

    def list_functions(self, folder_id: str, name: str) -> list:
        self.calls.append(("list", folder_id, name))
        if len(self.list_results) > 1:
            return self.list_results.pop(0)
        return self.list_results[0]

    def create_function(self, folder_id: str, name: str, description: str):  # noqa: ANN201
        from yc_function_deploy.operations import PendingOperation

        self.calls.append(("create", folder_id, name, description))
        return PendingOperation(id="op-create")

    def create_version(self, request):  # noqa: ANN001, ANN201
        from yc_function_deploy.operations import PendingOperation

        self.calls.append(("create_version", request.function_id))
        self.version_requests.append(request)
        return PendingOperation(id="op-version")

    def wait(self, operation):  # noqa: ANN001, ANN201
        self.calls.append(("wait", operation.id))
        if operation.id == "op-create":
            return self.create_result
        return self.version_result

    def count(self, kind: str) -> int:
        return sum(1 for c in self.calls if c[0] == kind)


class StubObjectStorage:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.objects: Dict[tuple, bytes] = {}
        self.error = error

    def put_object(self, bucket: str, key: str, content: bytes) -> None:
        if self.error is not None:
            raise self.error
        self.objects[(bucket, key)] = content


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def storage() -> StubObjectStorage:
    return StubObjectStorage()


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")

"""
clients
-------

원격 서비스에 대한 좁은 인터페이스와 Yandex Cloud SDK 기반 구현.

핵심 로직(yc_functions / yc_storage / orchestrator)은 Protocol 만 의존하므로
테스트에서는 stub 구현으로 대체할 수 있다.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional, Protocol
from urllib.parse import quote

import grpc
import requests
from google.protobuf import text_format
from google.protobuf.duration_pb2 import Duration
from google.protobuf.json_format import MessageToDict
from google.rpc import code_pb2
from yandex.cloud.serverless.functions.v1.function_pb2 import Package, Resources
from yandex.cloud.serverless.functions.v1.function_service_pb2 import (
    CreateFunctionMetadata,
    CreateFunctionRequest,
    CreateFunctionVersionMetadata,
    CreateFunctionVersionRequest,
    ListFunctionsRequest,
)
from yandex.cloud.serverless.functions.v1.function_service_pb2_grpc import FunctionServiceStub

from .errors import RemoteAPIError, UploadError
from .logging_utils import get_logger
from .models import FunctionSummary, VersionRequest
from .operations import CompletedOperation, OperationFailure, PendingOperation


logger = get_logger(__name__)

STORAGE_ENDPOINT = "https://storage.yandexcloud.net"
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_UPLOAD_TIMEOUT = 300.0


class FunctionLookup(Protocol):
    def list_functions(self, folder_id: str, name: str) -> List[FunctionSummary]: ...


class FunctionCreator(Protocol):
    def create_function(self, folder_id: str, name: str, description: str) -> PendingOperation: ...


class VersionCreator(Protocol):
    def create_version(self, request: VersionRequest) -> PendingOperation: ...


class OperationWaiter(Protocol):
    def wait(self, operation: PendingOperation) -> CompletedOperation: ...


class FunctionService(FunctionLookup, FunctionCreator, VersionCreator, OperationWaiter, Protocol):
    """resolver/publisher 가 필요로 하는 기능 묶음."""


class ObjectStorage(Protocol):
    def put_object(self, bucket: str, key: str, content: bytes) -> None: ...


def _rpc_error(action: str, e: grpc.RpcError) -> RemoteAPIError:
    code = getattr(e, "code", None)
    details = getattr(e, "details", None)
    if callable(code) and callable(details):
        return RemoteAPIError(f"{action} 실패: {code().name}: {details()}")
    return RemoteAPIError(f"{action} 실패: {e}")


def _format_code(code: int) -> str:
    try:
        return code_pb2.Code.Name(code)
    except ValueError:
        return str(code)


class YcFunctionService:
    """Serverless Functions API (gRPC) 어댑터."""

    def __init__(self, sdk, *, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:  # noqa: ANN001
        self._sdk = sdk
        self._client = sdk.client(FunctionServiceStub)
        self._poll_interval = poll_interval

    def list_functions(self, folder_id: str, name: str) -> List[FunctionSummary]:
        request = ListFunctionsRequest(folder_id=folder_id, filter=f'name = "{name}"')
        try:
            response = self._client.List(request)
        except grpc.RpcError as e:
            raise _rpc_error("함수 목록 조회", e) from e
        return [
            FunctionSummary(id=f.id, name=f.name, folder_id=f.folder_id)
            for f in response.functions
        ]

    def create_function(self, folder_id: str, name: str, description: str) -> PendingOperation:
        request = CreateFunctionRequest(folder_id=folder_id, name=name, description=description)
        try:
            op = self._client.Create(request)
        except grpc.RpcError as e:
            raise _rpc_error("함수 생성", e) from e
        return PendingOperation(
            id=op.id,
            description=op.description,
            raw=op,
            metadata_type=CreateFunctionMetadata,
        )

    def create_version(self, request: VersionRequest) -> PendingOperation:
        message = CreateFunctionVersionRequest(
            function_id=request.function_id,
            runtime=request.runtime,
            entrypoint=request.entrypoint,
            resources=Resources(memory=request.memory),
            execution_timeout=Duration(seconds=request.execution_timeout),
            service_account_id=request.service_account_id,
            description=request.description,
            environment=request.environment,
            tag=request.tags,
        )
        if request.package is not None:
            message.package.CopyFrom(
                Package(
                    bucket_name=request.package.bucket,
                    object_name=request.package.object_name,
                )
            )
        else:
            message.content = request.content or b""

        try:
            op = self._client.CreateVersion(message)
        except grpc.RpcError as e:
            raise _rpc_error("함수 버전 생성", e) from e
        return PendingOperation(
            id=op.id,
            description=op.description,
            raw=op,
            metadata_type=CreateFunctionVersionMetadata,
        )

    def wait(self, operation: PendingOperation) -> CompletedOperation:
        logger.debug("operation 대기: %s (%s)", operation.id, operation.description)
        waiter = self._sdk.waiter(operation.id)
        try:
            for _ in waiter:
                time.sleep(self._poll_interval)
        except grpc.RpcError as e:
            raise _rpc_error(f"operation {operation.id} 조회", e) from e

        op = waiter.operation
        error: Optional[OperationFailure] = None
        if op.HasField("error"):
            error = OperationFailure(
                code=_format_code(op.error.code),
                message=op.error.message,
                details=[
                    text_format.MessageToString(d, as_one_line=True) for d in op.error.details
                ],
            )

        metadata = None
        if op.HasField("metadata") and operation.metadata_type is not None:
            meta = operation.metadata_type()
            op.metadata.Unpack(meta)
            metadata = MessageToDict(meta, preserving_proto_field_name=True)

        return CompletedOperation(id=op.id, done=op.done, error=error, metadata=metadata)


class YcObjectStorage:
    """
    Object Storage 어댑터.
    IAM 토큰(X-YaCloud-SubjectToken)으로 인증한 HTTP PUT 으로 업로드한다.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        *,
        endpoint: str = STORAGE_ENDPOINT,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_UPLOAD_TIMEOUT,
    ) -> None:
        self._token_provider = token_provider
        self._endpoint = endpoint.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def object_url(self, bucket: str, key: str) -> str:
        return f"{self._endpoint}/{quote(bucket)}/{quote(key)}"

    def put_object(self, bucket: str, key: str, content: bytes) -> None:
        url = self.object_url(bucket, key)
        headers = {
            "X-YaCloud-SubjectToken": self._token_provider(),
            "Content-Type": "application/zip",
        }
        try:
            response = self._session.put(url, data=content, headers=headers, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise UploadError(f"Object Storage 업로드 실패: {bucket}/{key}: {e}") from e
        logger.debug("업로드 완료: %s (%db)", url, len(content))

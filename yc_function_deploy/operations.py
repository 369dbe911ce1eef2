"""
operations
----------

원격 long-running operation 의 중립 모델.
SDK 어댑터가 protobuf Operation 을 이 타입으로 변환하고,
핵심 로직은 이 타입만 다룬다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import MissingMetadataError, RemoteOperationError


@dataclass(frozen=True)
class PendingOperation:
    id: str
    description: str = ""
    # SDK 어댑터가 대기할 때 쓰는 원본 객체 (protobuf Operation 등)
    raw: Any = None
    metadata_type: Any = None


@dataclass(frozen=True)
class OperationFailure:
    code: str
    message: str
    details: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CompletedOperation:
    id: str
    done: bool = True
    error: Optional[OperationFailure] = None
    metadata: Optional[Dict[str, Any]] = None


def raise_for_operation_error(operation: CompletedOperation) -> None:
    """error 필드가 있으면 RemoteOperationError 를 던진다."""
    if operation.error is None:
        return
    err = operation.error
    raise RemoteOperationError(err.code, err.message, err.details)


def require_metadata(operation: CompletedOperation, key: str, error_message: str,
                     error_cls: type = MissingMetadataError) -> str:
    """
    operation metadata 에서 key 값을 꺼낸다.
    error 검사는 호출 전에 끝나 있어야 한다.
    """
    if not operation.done:
        raise error_cls(f"{error_message} (operation {operation.id} 이 완료되지 않았습니다)")
    value = (operation.metadata or {}).get(key)
    if not value:
        raise error_cls(error_message)
    return str(value)

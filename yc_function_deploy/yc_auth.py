"""
yc_auth
-------

서비스 계정 authorized key(JSON) 파싱, SDK 생성, IAM 토큰 발급.
"""

from __future__ import annotations

import json
import time
from typing import Dict

import grpc
import jwt
from jwt.algorithms import RSAPSSAlgorithm
import yandexcloud
from yandex.cloud.iam.v1.iam_token_service_pb2 import CreateIamTokenRequest
from yandex.cloud.iam.v1.iam_token_service_pb2_grpc import IamTokenServiceStub

from .errors import InputError, RemoteAPIError
from .logging_utils import get_logger
from .reporter import Reporter


logger = get_logger(__name__)

IAM_TOKEN_AUDIENCE = "https://iam.api.cloud.yandex.net/iam/v1/tokens"
JWT_TTL_SECONDS = 360
USER_AGENT = "yc-function-deploy"

_REQUIRED_KEY_FIELDS = ("id", "service_account_id", "private_key")


def load_service_account_key(raw: str, reporter: Reporter) -> Dict[str, str]:
    """
    ``yc iam key create`` 로 만든 authorized key JSON 을 파싱한다.
    원문과 private key 는 파싱 전에 마스킹한다.
    """
    reporter.mask(raw)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InputError(f"서비스 계정 키 JSON 파싱 실패: {e.msg}") from e

    if not isinstance(data, dict):
        raise InputError("서비스 계정 키 JSON 은 object 여야 합니다.")

    missing = [name for name in _REQUIRED_KEY_FIELDS if not data.get(name)]
    if missing:
        raise InputError("서비스 계정 키에 필드가 없습니다: " + ", ".join(missing))

    reporter.mask(data["private_key"])
    _validate_private_key(data["private_key"])
    logger.debug("서비스 계정 키 로드: key_id=%s sa=%s", data["id"], data["service_account_id"])
    return {
        "id": data["id"],
        "service_account_id": data["service_account_id"],
        "private_key": data["private_key"],
    }


def _validate_private_key(private_key: str) -> None:
    """PS256 서명에 쓸 수 있는 PEM 개인키인지 미리 확인한다."""
    try:
        prepared = RSAPSSAlgorithm(RSAPSSAlgorithm.SHA256).prepare_key(private_key)
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise InputError(f"서비스 계정 private_key 를 읽을 수 없습니다: {e}") from e
    # 공개키 PEM 도 prepare_key 는 통과하므로 서명 가능 여부를 따로 본다.
    if not hasattr(prepared, "sign"):
        raise InputError("서비스 계정 private_key 가 개인키가 아닙니다.")


def build_sdk(key: Dict[str, str]) -> yandexcloud.SDK:
    return yandexcloud.SDK(service_account_key=key, user_agent=USER_AGENT)


def _signed_jwt(key: Dict[str, str]) -> str:
    now = int(time.time())
    payload = {
        "aud": IAM_TOKEN_AUDIENCE,
        "iss": key["service_account_id"],
        "iat": now,
        "exp": now + JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, key["private_key"], algorithm="PS256", headers={"kid": key["id"]})


def create_iam_token(sdk: yandexcloud.SDK, key: Dict[str, str], reporter: Reporter) -> str:
    """서비스 계정 키로 서명한 JWT 를 IAM 토큰으로 교환한다."""
    try:
        signed = _signed_jwt(key)
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise InputError(f"IAM 토큰용 JWT 서명 실패: {e}") from e

    client = sdk.client(IamTokenServiceStub)
    try:
        response = client.Create(CreateIamTokenRequest(jwt=signed))
    except grpc.RpcError as e:
        raise RemoteAPIError(f"IAM 토큰 발급 실패: {e}") from e
    reporter.mask(response.iam_token)
    return response.iam_token

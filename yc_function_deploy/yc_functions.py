"""
yc_functions
------------

Serverless Function 조회/생성(find-or-create)과 새 버전 발행을 담당하는 모듈.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .clients import FunctionService
from .config import DeploymentConfig
from .errors import CreationFailedError, MissingMetadataError
from .logging_utils import get_logger
from .models import FunctionHandle, StagingReference, VersionRequest, VersionResult
from .operations import raise_for_operation_error, require_metadata
from .reporter import Reporter


logger = get_logger(__name__)


def resolve_function(
    service: FunctionService,
    reporter: Reporter,
    name: str,
    folder_id: str,
    repository: str = "",
) -> FunctionHandle:
    """
    folder 안에서 name 과 정확히 일치하는 함수를 찾고, 없으면 생성한다.

    같은 이름이 여러 개면 목록의 첫 번째를 사용한다.
    """
    with reporter.group("Find function id"):
        functions = service.list_functions(folder_id, name)

        if functions:
            if len(functions) > 1:
                reporter.warning(
                    f"'{name}' 이름의 함수가 {len(functions)}개 있습니다. 첫 번째를 사용합니다."
                )
            function_id = functions[0].id
            reporter.info(
                f"There is the function named '{name}' in the folder already. Its id is '{function_id}'"
            )
            handle = FunctionHandle(id=function_id, name=name, folder_id=folder_id)
        else:
            description = f"Created from {repository}" if repository else "Created by yc-function-deploy"
            pending = service.create_function(folder_id, name, description)
            finished = service.wait(pending)
            raise_for_operation_error(finished)
            try:
                function_id = require_metadata(
                    finished,
                    "function_id",
                    f"Failed to create function '{name}'",
                    error_cls=CreationFailedError,
                )
            except CreationFailedError:
                reporter.error(f"Failed to create function '{name}'")
                raise
            reporter.info(
                f"There was no function named '{name}' in the folder. So it was created. Id is '{function_id}'"
            )
            handle = FunctionHandle(id=function_id, name=name, folder_id=folder_id, created=True)

        reporter.set_output("function-id", handle.id)
    return handle


def parse_environment(lines: Iterable[str]) -> Dict[str, str]:
    """
    ``KEY=VALUE`` 줄들을 dict 로 변환한다.

    첫 ``=`` 에서 나누고 key/value 양끝 공백을 제거한다.
    값 안의 ``=`` 는 그대로 보존하며, 중복 key 는 마지막 값이 이긴다.
    """
    environment: Dict[str, str] = {}
    for line in lines:
        key, _, value = line.partition("=")
        key = key.strip()
        if not key:
            logger.warning("key 가 없는 환경변수 줄을 무시합니다: %r", line)
            continue
        environment[key] = value.strip()

    logger.info("EnvObject keys: %s", sorted(environment))
    return environment


def build_version_request(
    function_id: str,
    cfg: DeploymentConfig,
    content: bytes,
    staging: Optional[StagingReference] = None,
) -> VersionRequest:
    request = VersionRequest(
        function_id=function_id,
        runtime=cfg.runtime,
        entrypoint=cfg.entrypoint,
        memory=cfg.memory,
        execution_timeout=cfg.execution_timeout,
        service_account_id=cfg.service_account,
        description=cfg.description,
        environment=parse_environment(cfg.environment),
        tags=list(cfg.tags),
    )
    if staging is not None:
        request.package = staging
    else:
        request.content = content
    return request


def publish_version(
    service: FunctionService,
    reporter: Reporter,
    function_id: str,
    cfg: DeploymentConfig,
    content: bytes,
    staging: Optional[StagingReference] = None,
) -> VersionResult:
    """
    새 함수 버전을 생성하고 operation 완료까지 기다린다.

    operation 의 error 필드를 metadata 보다 먼저 확인한다.
    """
    with reporter.group("Create function version"):
        reporter.info(f"Function '{cfg.function_name}' {function_id}")
        reporter.info(f'Parsed memory: "{cfg.memory}"')
        reporter.info(f'Parsed timeout: "{cfg.execution_timeout}"')

        request = build_version_request(function_id, cfg, content, staging)
        if staging is not None:
            reporter.info(f'From bucket: "{staging}"')
        else:
            reporter.info(f"Inline content: {len(content)}b")

        pending = service.create_version(request)
        finished = service.wait(pending)
        raise_for_operation_error(finished)
        reporter.info("Operation complete")

        try:
            version_id = require_metadata(
                finished,
                "function_version_id",
                "Failed to create function version",
            )
        except MissingMetadataError:
            reporter.error("Failed to create function version")
            raise

        reporter.set_output("version-id", version_id)

    return VersionResult(function_id=function_id, version_id=version_id)

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from .archive import build_archive
from .clients import FunctionService, ObjectStorage
from .config import DeploymentConfig
from .errors import DeployError, InputError
from .logging_utils import get_logger
from .models import StagingReference, VersionResult
from .reporter import Reporter
from .yc_functions import parse_environment, publish_version, resolve_function
from .yc_storage import object_name_for, stage_artifact


logger = get_logger(__name__)

# CLI 등에서 사용할 수 있도록 단계 이름을 상수로 노출
ALL_STEPS: List[str] = [
    "archive",
    "resolve",
    "stage",
    "publish",
]


def _step_enabled(name: str, cfg: DeploymentConfig) -> bool:
    if name == "stage":
        return cfg.staged
    return True


def plan_deploy(cfg: DeploymentConfig) -> str:
    """
    현재 설정과 실행될 단계를 요약 텍스트로 리턴한다.
    실제 원격 호출은 하지 않는다.
    """
    lines: List[str] = []
    lines.append("# Deploy plan")
    lines.append(f"- folder: {cfg.folder_id}")
    lines.append(f"- function: {cfg.function_name}")
    lines.append("")

    lines.append("## Config summary")
    lines.append(f"- runtime: {cfg.runtime}")
    lines.append(f"- entrypoint: {cfg.entrypoint}")
    lines.append(f"- memory: {cfg.memory} bytes")
    lines.append(f"- execution_timeout: {cfg.execution_timeout}s")
    lines.append(f"- include: {', '.join(cfg.include)}")
    lines.append(f"- exclude: {', '.join(cfg.exclude) or '(none)'}")
    # 값은 시크릿일 수 있으므로 key 만 보여준다.
    env_keys = sorted(parse_environment(cfg.environment))
    lines.append(f"- environment: {', '.join(env_keys) or '(none)'}")
    lines.append(f"- service_account: {cfg.service_account or '(not set)'}")
    lines.append(f"- tags: {', '.join(cfg.tags) or '(none)'}")
    if cfg.staged:
        target = object_name_for("<function-id>", cfg.revision or "<GITHUB_SHA>")
        lines.append(f"- upload: bucket {cfg.bucket}/{target}")
    else:
        lines.append("- upload: inline content")
    lines.append("")

    lines.append("## Steps")
    for name in ALL_STEPS:
        status = "ENABLED" if _step_enabled(name, cfg) else "SKIPPED"
        lines.append(f"- {name}: {status}")

    return "\n".join(lines)


def deploy_function(
    cfg: DeploymentConfig,
    service: FunctionService,
    storage: Optional[ObjectStorage],
    reporter: Reporter,
) -> VersionResult:
    """
    archive -> resolve -> (stage) -> publish 순서로 실행한다.

    어느 단계든 실패하면 예외가 그대로 전파된다.
    이미 생성된 원격 리소스(버전 없는 새 함수 등)는 되돌리지 않는다.
    """
    with reporter.group("ZipDirectory"):
        archive = build_archive(cfg.include, cfg.exclude)
    reporter.info(f"Buffer size: {archive.size}b")

    handle = resolve_function(service, reporter, cfg.function_name, cfg.folder_id, cfg.repository)
    if handle.created:
        logger.info("새 함수를 생성했습니다: %s", handle.id)

    staging: Optional[StagingReference] = None
    if cfg.staged:
        if storage is None:
            raise InputError("bucket 이 설정되었지만 Object Storage 클라이언트가 없습니다.")
        staging = stage_artifact(
            storage, reporter, cfg.bucket, handle.id, cfg.revision, archive.content,
        )

    result = publish_version(service, reporter, handle.id, cfg, archive.content, staging)

    completed_at = datetime.now().astimezone().isoformat(timespec="seconds")
    reporter.set_output("time", completed_at)
    return replace(result, time=completed_at)


def run(
    cfg: DeploymentConfig,
    service: FunctionService,
    storage: Optional[ObjectStorage],
    reporter: Reporter,
) -> Optional[VersionResult]:
    """
    deploy_function 을 실행하고, 실패하면 reporter.set_failed 로 보고한다.

    Returns:
        성공 시 VersionResult, 실패 시 None
    """
    try:
        return deploy_function(cfg, service, storage, reporter)
    except (DeployError, OSError) as e:
        logger.debug("배포 실패", exc_info=True)
        reporter.set_failed(str(e))
        return None

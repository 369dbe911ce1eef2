import os
import sys
from typing import Optional

import click

from .clients import YcFunctionService, YcObjectStorage
from .config import DeploymentConfig, load_credentials_json, load_env_files
from .errors import DeployError
from .logging_utils import setup_logging, get_logger
from .models import VersionResult
from .orchestrator import plan_deploy, run
from .reporter import GithubActionsReporter
from .yc_auth import build_sdk, create_iam_token, load_service_account_key


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). .env 파일 로드와 include 경로의 기준이 된다.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (-vv 는 SDK/HTTP 로그까지)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """Yandex Cloud Serverless Function 배포용 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _load_config_from_ctx(ctx: click.Context) -> DeploymentConfig:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    cfg = DeploymentConfig.from_env()
    logger.debug("Config loaded: function=%s folder=%s", cfg.function_name, cfg.folder_id)
    return cfg


@main.command()
@click.pass_context
def plan(ctx: click.Context) -> None:
    """현재 설정을 요약하고 실행될 단계를 출력 (원격 호출 없음)"""
    try:
        cfg = _load_config_from_ctx(ctx)
    except DeployError as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    click.echo(plan_deploy(cfg))


@main.command(name="deploy")
@click.pass_context
def deploy(ctx: click.Context) -> None:
    """아카이브를 만들고 함수 버전을 새로 발행"""
    reporter = GithubActionsReporter()

    try:
        cfg = _load_config_from_ctx(ctx)
        key = load_service_account_key(load_credentials_json(), reporter)
    except DeployError as e:
        reporter.set_failed(str(e))
        sys.exit(1)

    reporter.info("Function inputs set")

    sdk = build_sdk(key)
    service = YcFunctionService(sdk)
    storage = None
    if cfg.staged:
        storage = YcObjectStorage(lambda: create_iam_token(sdk, key, reporter))

    base_dir: str = ctx.obj["chdir"]
    result = _run_in(base_dir, cfg, service, storage, reporter)

    if result is None:
        sys.exit(1)

    click.echo(f"function-id: {result.function_id}")
    click.echo(f"version-id: {result.version_id}")
    click.echo(f"time: {result.time}")


def _run_in(
    base_dir: str,
    cfg: DeploymentConfig,
    service: YcFunctionService,
    storage: Optional[YcObjectStorage],
    reporter: GithubActionsReporter,
) -> Optional[VersionResult]:
    """include 경로가 base_dir 기준이 되도록 작업 디렉토리를 옮겨 실행한다."""
    previous = os.getcwd()
    os.chdir(base_dir)
    try:
        return run(cfg, service, storage, reporter)
    finally:
        os.chdir(previous)

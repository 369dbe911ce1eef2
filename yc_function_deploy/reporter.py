"""
reporter
--------

CI 러너(GitHub Actions)와의 접점. 로그 그룹, 시크릿 마스킹, output 설정,
실패 보고를 담당하며 orchestrator 에 명시적으로 주입된다.
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterator, List, Optional, Protocol, TextIO

from .logging_utils import get_logger


logger = get_logger(__name__)


class Reporter(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def group(self, title: str) -> ContextManager[None]: ...

    def mask(self, secret: str) -> None: ...

    def set_output(self, name: str, value: str) -> None: ...

    def set_failed(self, message: str) -> None: ...


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GithubActionsReporter:
    """
    GitHub Actions workflow command 를 stdout 에 출력하는 Reporter.

    output 은 ``$GITHUB_OUTPUT`` 파일이 있으면 그 파일에 ``name=value`` 로 추가하고,
    없으면 (로컬 실행 등) ``::set-output`` 명령으로 대신한다.
    """

    def __init__(self, stream: Optional[TextIO] = None, output_file: Optional[str] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._output_file = output_file if output_file is not None else os.getenv("GITHUB_OUTPUT", "")
        self._secrets: List[str] = []
        self.outputs: Dict[str, str] = {}
        self.failed = False
        self.failure_message: Optional[str] = None

    def _command(self, name: str, value: str = "") -> None:
        self._stream.write(f"::{name}::{_escape_data(value)}\n")
        self._stream.flush()

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    def info(self, message: str) -> None:
        logger.info(self._redact(message))

    def warning(self, message: str) -> None:
        message = self._redact(message)
        logger.warning(message)
        self._command("warning", message)

    def error(self, message: str) -> None:
        message = self._redact(message)
        logger.error(message)
        self._command("error", message)

    @contextmanager
    def group(self, title: str) -> Iterator[None]:
        self._command("group", title)
        try:
            yield
        finally:
            self._command("endgroup")

    def mask(self, secret: str) -> None:
        if not secret:
            return
        # 여러 줄 시크릿(PEM 등)은 줄 단위로 마스킹해야 러너가 모두 가린다.
        for line in [secret, *secret.splitlines()]:
            line = line.strip()
            if line and line not in self._secrets:
                self._secrets.append(line)
                self._command("add-mask", line)

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value
        logger.debug("output 설정: %s=%s", name, value)
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(f"{name}={value}\n")
        else:
            self._stream.write(f"::set-output name={name}::{_escape_data(value)}\n")
            self._stream.flush()

    def set_failed(self, message: str) -> None:
        self.failed = True
        self.failure_message = self._redact(message)
        self.error(message)

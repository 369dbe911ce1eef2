"""
archive
-------

include 경로들을 메모리상의 ZIP 아카이브로 묶는 모듈.
중간 산출물을 로컬 디스크에 쓰지 않는다.
"""

from __future__ import annotations

import io
import os
import posixpath
import zipfile
from dataclasses import dataclass, field
from typing import Iterable, List

from .errors import ArchiveError, EmptyArchiveError, IncludePathNotFoundError
from .glob_filter import parse_ignore_patterns, should_exclude
from .logging_utils import get_logger


logger = get_logger(__name__)

COMPRESS_LEVEL = 9


@dataclass(frozen=True)
class Archive:
    content: bytes
    entries: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.content)


def _entry_name(*parts: str) -> str:
    """OS 경로를 ZIP 엔트리 이름(posix, 상대경로)으로 정규화한다."""
    joined = posixpath.normpath(posixpath.join(*(p.replace(os.sep, "/") for p in parts)))
    return joined.lstrip("/")


def _iter_directory(root: str) -> Iterable[tuple[str, str]]:
    """(파일 경로, root 기준 상대경로) 를 재귀적으로 돌려준다."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            yield path, os.path.relpath(path, root)


def _add_directory(
    zf: zipfile.ZipFile,
    root: str,
    patterns: List[str],
    entries: List[str],
) -> None:
    for path, rel in _iter_directory(root):
        name = _entry_name(root, rel)
        # 디렉토리 기준 상대경로와 아카이브 엔트리 이름 둘 다 검사한다.
        if should_exclude(_entry_name(rel), patterns) or should_exclude(name, patterns):
            logger.debug("제외: %s", name)
            continue
        zf.write(path, arcname=name)
        entries.append(name)


def build_archive(include: Iterable[str], exclude: Iterable[str]) -> Archive:
    """
    include 의 각 경로를 ZIP 으로 묶는다.

    - 디렉토리: 하위 파일을 재귀적으로 추가하되, exclude 패턴에 걸리는 파일은 뺀다.
    - 단일 파일: 자기 경로 이름으로 그대로 추가한다. (필터 미적용)
    """
    include = list(include)
    for line in include:
        if not os.path.lexists(line):
            raise IncludePathNotFoundError(line)

    patterns = parse_ignore_patterns(exclude)
    buffer = io.BytesIO()
    entries: List[str] = []

    logger.info("Archive initialize")
    try:
        with zipfile.ZipFile(
            buffer,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=COMPRESS_LEVEL,
        ) as zf:
            for line in include:
                if os.path.isdir(line):
                    _add_directory(zf, line, patterns, entries)
                else:
                    name = _entry_name(line)
                    zf.write(line, arcname=name)
                    entries.append(name)
                logger.info("Path '%s' added to archive", line)
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveError(f"아카이브 생성 실패: {e}") from e

    logger.info("Archive finalized")

    content = buffer.getvalue()
    if not content:
        raise EmptyArchiveError("Failed to initialize Buffer")

    logger.info("Buffer size: %db (%d entries)", len(content), len(entries))
    return Archive(content=content, entries=entries)

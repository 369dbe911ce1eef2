"""Exclude pattern matching for archive entries."""

from __future__ import annotations

from typing import Iterable, List

from wcmatch import glob

from .logging_utils import get_logger


logger = get_logger(__name__)

# ``*`` 는 ``/`` 를 넘지 않고, ``**`` 만 여러 단계 디렉토리에 매칭된다.
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE


def _non_blank(patterns: Iterable[str]) -> List[str]:
    return [p.strip() for p in patterns if p and p.strip()]


def parse_ignore_patterns(patterns: Iterable[str]) -> List[str]:
    """
    빈 문자열/공백뿐인 패턴을 제거한다.
    남은 패턴이 없으면 필터가 없는 것으로 취급된다.
    """
    result = _non_blank(patterns)
    logger.info("Source ignore pattern: %s", result)
    return result


def should_exclude(relative_path: str, patterns: Iterable[str]) -> bool:
    """
    relative_path 전체가 패턴 중 하나라도 매칭되면 True.
    (``*``, ``**``, ``?``, ``[abc]`` 셸 글롭 문법)
    """
    cleaned = _non_blank(patterns)
    if not cleaned:
        return False
    return glob.globmatch(relative_path, cleaned, flags=GLOB_FLAGS)

"""
core/resource/validator.py - 필터 설정 검증

설정에 포함된 리소스 유형이 모두 레지스트리에 있는지 확인합니다.
목록 조회/매칭을 시작하기 전에 한 번만 실행됩니다.
"""

from __future__ import annotations

import logging
from collections.abc import Container

from core.exceptions import UnsupportedKindError

from .config import FilterConfig

logger = logging.getLogger(__name__)


def validate(config: FilterConfig, registry: Container[str]) -> None:
    """설정의 모든 리소스 유형이 지원되는지 검증

    Args:
        config: 필터 설정
        registry: ResourceRegistry (또는 `in` 연산을 지원하는 유형 집합)

    Raises:
        UnsupportedKindError: 지원하지 않는 유형 목록 (설정 순서)
    """
    unsupported = [kind for kind in config if kind not in registry]
    if unsupported:
        logger.error(f"지원하지 않는 리소스 유형: {', '.join(unsupported)}")
        raise UnsupportedKindError(unsupported, source=config.source)
    logger.debug(f"필터 설정 검증 완료: {len(config)}개 리소스 유형")

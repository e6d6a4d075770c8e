"""
core/resource/filter.py - 리소스 매칭 엔진

정규화된 리소스(NormalizedResource)가 필터 설정에 의해 선택되는지 판단합니다.
리소스 유형과 무관한 순수 함수이며, 상태를 변경하지 않으므로
여러 스레드에서 동시에 사용할 수 있습니다.

매칭 정책:
    1. 설정에 없는 리소스 유형은 선택하지 않음
    2. Created 범위가 설정되어 있으면 범위 안에 있어야 함
    3. ID/태그 조건이 모두 없으면 해당 유형의 모든 리소스 선택
    4. 그 외에는 ID 매칭 OR 태그 매칭 (태그는 리소스에 태그가 있을 때만 평가)
"""

from __future__ import annotations

import logging
from datetime import datetime

from core.exceptions import MissingCriteriaError, NoIDCriteria, NoTagCriteria

from .config import FilterConfig, KindFilterEntry
from .types import NormalizedResource

logger = logging.getLogger(__name__)


class Filter:
    """필터 설정 기반 리소스 선택기

    Example:
        f = Filter(load_filter_config("filter.yml"))
        if f.matches(NormalizedResource(kind="aws_vpc", id="vpc-123", tags={"foo": "bar"})):
            print("삭제 대상")
    """

    def __init__(self, config: FilterConfig):
        self.config = config

    def resource_types(self) -> list[str]:
        """설정에 포함된 리소스 유형 목록 (문서 순서)"""
        return list(self.config)

    def _entry(self, kind: str) -> KindFilterEntry:
        # 설정에 없는 유형은 조건 없음과 동일하게 취급
        return self.config.get(kind) or KindFilterEntry()

    def match_id(self, resource: NormalizedResource) -> bool:
        """ID 정규식 중 하나라도 일치하면 True

        Raises:
            NoIDCriteria: 해당 유형에 ID 조건이 없음
        """
        entry = self._entry(resource.kind)
        if not entry.id_patterns:
            raise NoIDCriteria(resource.kind)
        return any(pattern.search(resource.id) for pattern in entry.id_patterns)

    def match_tags(self, resource: NormalizedResource) -> bool:
        """설정된 태그 키 중 하나라도 리소스에 있고 값이 정규식과 일치하면 True

        태그 키는 정확히 일치해야 하고, 정규식은 값에만 적용됩니다.

        Raises:
            NoTagCriteria: 해당 유형에 태그 조건이 없음
        """
        entry = self._entry(resource.kind)
        if not entry.tag_patterns:
            raise NoTagCriteria(resource.kind)
        for key, pattern in entry.tag_patterns.items():
            value = resource.tags.get(key)
            if value is not None and pattern.search(value):
                return True
        return False

    def match_created(self, resource: NormalizedResource) -> bool:
        """생성 시각이 설정된 범위 안에 있는지 확인

        범위가 없으면 항상 True, 범위가 있는데 생성 시각을 알 수 없으면 False.
        """
        created_range = self._entry(resource.kind).created
        if created_range is None:
            return True
        if not isinstance(resource.created, datetime):
            return False
        return created_range.contains(resource.created)

    def matches(self, resource: NormalizedResource) -> bool:
        """리소스가 필터에 의해 선택되는지 판단"""
        entry = self.config.get(resource.kind)
        if entry is None:
            return False

        if not self.match_created(resource):
            return False

        if not entry.has_criteria:
            return True

        results: list[bool] = []
        try:
            results.append(self.match_id(resource))
        except MissingCriteriaError:
            pass

        if resource.tags:
            try:
                results.append(self.match_tags(resource))
            except MissingCriteriaError:
                pass

        matched = any(results)
        logger.debug(f"[{resource.kind}] {resource.id}: {'선택' if matched else '제외'}")
        return matched

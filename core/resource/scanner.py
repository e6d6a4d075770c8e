"""
core/resource/scanner.py - 리소스 스캔 오케스트레이션

필터 설정 검증 -> 리소스 유형별 목록 조회 -> 정규화/매칭 순서로 실행합니다.
리소스 유형별 작업은 서로 공유 상태가 없으므로 ParallelExecutor로 병렬 실행하고,
유형 하나의 실패(API 에러, 타임아웃, 경로 해석 실패)는 해당 유형에만 격리됩니다.

Usage:
    from core.resource import Filter, ResourceRegistry, Scanner, load_filter_config

    resource_filter = Filter(load_filter_config("filter.yml"))
    scanner = Scanner(registry, resource_filter, region="ap-northeast-2")
    result = scanner.scan()

    for kind, resources in result.matches.items():
        print(kind, [r.id for r in resources])
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from botocore.exceptions import ClientError

from core.exceptions import APICallError
from core.parallel import ParallelConfig, ParallelExecutor, TaskError

from .filter import Filter
from .registry import ResourceRegistry
from .types import NormalizedResource, ResourceKindDescriptor
from .validator import validate

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """스캔 결과

    Attributes:
        matches: 리소스 유형 -> 매칭된 리소스 목록 (레지스트리 순서)
        errors: 실패한 리소스 유형의 에러 정보
        region: 스캔한 리전
    """

    matches: dict[str, list[NormalizedResource]] = field(default_factory=dict)
    errors: list[TaskError] = field(default_factory=list)
    region: str = ""

    @property
    def resources(self) -> list[NormalizedResource]:
        """모든 매칭 리소스 (평탄화)"""
        return [resource for resources in self.matches.values() for resource in resources]

    @property
    def total_count(self) -> int:
        return sum(len(resources) for resources in self.matches.values())

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def failed_kinds(self) -> list[str]:
        return [error.identifier for error in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "total": self.total_count,
            "matches": {kind: [r.to_dict() for r in resources] for kind, resources in self.matches.items()},
            "errors": [error.to_dict() for error in self.errors],
        }


class Scanner:
    """필터 설정에 포함된 리소스 유형을 스캔하여 매칭 리소스를 수집

    Args:
        registry: 리소스 디스크립터 레지스트리
        resource_filter: 매칭 엔진
        config: 병렬 실행 설정
        region: 결과에 기록할 리전
    """

    def __init__(
        self,
        registry: ResourceRegistry,
        resource_filter: Filter,
        config: ParallelConfig | None = None,
        region: str = "",
    ):
        self.registry = registry
        self.filter = resource_filter
        self.config = config or ParallelConfig()
        self.region = region

    def target_kinds(self, kinds: Sequence[str] | None = None) -> list[ResourceKindDescriptor]:
        """스캔 대상 디스크립터 (레지스트리 순서)

        Args:
            kinds: 명시적 대상 유형 (None이면 설정에 포함된 모든 유형)

        Raises:
            UnknownKindError: kinds에 등록되지 않은 유형이 있음
        """
        wanted = set(self.filter.resource_types())
        if kinds is not None:
            for kind in kinds:
                self.registry.lookup(kind)
            wanted &= set(kinds)
        return [descriptor for descriptor in self.registry.list_all_kinds() if descriptor.kind in wanted]

    def scan(self, kinds: Sequence[str] | None = None) -> ScanResult:
        """스캔 실행

        Raises:
            UnsupportedKindError: 설정에 지원하지 않는 유형이 있음 (스캔 시작 전)
        """
        validate(self.filter.config, self.registry)

        descriptors = self.target_kinds(kinds)
        logger.info(f"스캔 시작: {len(descriptors)}개 리소스 유형 ({self.region or 'default'})")

        executor = ParallelExecutor(self.config, region=self.region)
        exec_result = executor.execute([(d.kind, self._task(d)) for d in descriptors])

        result = ScanResult(region=self.region)
        for task_result in exec_result.results:
            if task_result.success:
                result.matches[task_result.identifier] = task_result.data or []
            elif task_result.error is not None:
                logger.warning(f"리소스 유형 스캔 실패: {task_result.error}")
                result.errors.append(task_result.error)

        logger.info(f"스캔 완료: 매칭 {result.total_count}개, 실패 유형 {len(result.errors)}개")
        return result

    def _task(self, descriptor: ResourceKindDescriptor):
        return lambda: self.scan_kind(descriptor)

    def scan_kind(self, descriptor: ResourceKindDescriptor) -> list[NormalizedResource]:
        """리소스 유형 하나 스캔 (모든 페이지, 응답 순서 유지)

        Raises:
            APICallError: AWS API 호출 실패
            PathResolutionError: 디스크립터 경로가 응답 구조와 맞지 않음
        """
        selected: list[NormalizedResource] = []
        try:
            for page in descriptor.list_pages():
                selected.extend(descriptor.select(page, self.filter))
        except ClientError as e:
            raise APICallError.from_client_error(descriptor.kind, "list", e) from e

        logger.debug(f"[{descriptor.kind}] 매칭 {len(selected)}개")
        return selected

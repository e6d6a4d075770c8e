"""
core/resource - 리소스 추출 및 필터 매칭 엔진

리소스 유형별로 모양이 다른 AWS 목록 조회 응답을 공통 레코드로 정규화하고,
선언적 필터 설정으로 삭제 대상 리소스를 선택합니다.

주요 구성 요소:
- ResourceRegistry / AWSClients: 리소스 유형별 조회 방법 (types.py, registry.py)
- selector: 응답 경로 탐색, 태그/생성 시각 정규화
- FilterConfig / load_filter_config: YAML 필터 설정
- Filter: 매칭 엔진
- validate: 설정 검증
- Scanner / ScanResult: 유형별 병렬 스캔

Example:
    import boto3
    from core.resource import AWSClients, Filter, ResourceRegistry, Scanner, load_filter_config

    clients = AWSClients(boto3.Session(), region="ap-northeast-2")
    registry = ResourceRegistry.from_clients(clients)
    scanner = Scanner(registry, Filter(load_filter_config("filter.yml")), region=clients.region)
    result = scanner.scan()
"""

from .config import (
    CreatedRange,
    FileReader,
    FilterConfig,
    KindFilterEntry,
    LocalFileReader,
    MemoryFileReader,
    load_filter_config,
    parse_filter_config,
)
from .filter import Filter
from .registry import AWSClients, ResourceRegistry, build_descriptors
from .scanner import Scanner, ScanResult
from .types import NormalizedResource, ResourceKindDescriptor
from .validator import validate

__all__: list[str] = [
    # Types
    "NormalizedResource",
    "ResourceKindDescriptor",
    # Config
    "CreatedRange",
    "FileReader",
    "FilterConfig",
    "KindFilterEntry",
    "LocalFileReader",
    "MemoryFileReader",
    "load_filter_config",
    "parse_filter_config",
    # Matching
    "Filter",
    "validate",
    # Registry
    "AWSClients",
    "ResourceRegistry",
    "build_descriptors",
    # Scan
    "Scanner",
    "ScanResult",
]

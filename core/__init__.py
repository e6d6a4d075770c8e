# core/__init__.py
"""
core - awsweep 인프라

AWS 리소스 스캔/필터 매칭 엔진과 공통 인프라를 포함하는 최상위 패키지입니다.

아키텍처:
    core/
    ├── parallel/       # 병렬 처리 (executor, retry, boto3 client)
    ├── resource/       # 리소스 레지스트리, 정규화, 필터 매칭, 스캔
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import settings, get_default_region
    region = get_default_region()

    # 예외 처리
    from core.exceptions import ConfigError, is_not_found
    try:
        config = load_filter_config("filter.yml")
    except ConfigError as e:
        print(e)

    # 스캔
    from core.resource import Filter, Scanner, load_filter_config
    scanner = Scanner(registry, Filter(load_filter_config("filter.yml")))
    result = scanner.scan()
"""

from core import config, exceptions, parallel, resource

__all__: list[str] = [
    # 서브패키지
    "parallel",
    "resource",
    # 모듈
    "config",
    "exceptions",
]

"""
core/config.py - 중앙 설정 관리

애플리케이션 전역 설정값과 환경변수 헬퍼를 제공합니다.

환경변수 (우선순위: 환경변수 > 기본값):
    AWSWEEP_REGION / AWS_REGION / AWS_DEFAULT_REGION: 기본 리전
    AWSWEEP_API_TIMEOUT: API 읽기 타임아웃 (초)
    AWSWEEP_API_CONNECT_TIMEOUT: API 연결 타임아웃 (초)
    AWSWEEP_API_RETRY_COUNT: API 재시도 횟수
    AWSWEEP_MAX_WORKERS: 리소스 유형별 병렬 조회 워커 수

Usage:
    from core.config import settings, get_default_region

    region = get_default_region()
    timeout = settings.API_TIMEOUT
"""

import os
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path

DISTRIBUTION_NAME = "awsweep"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def get_env_bool(name: str, default: bool = False) -> bool:
    """환경변수를 bool로 읽기 (알 수 없는 값이면 default)"""
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def get_env_int(name: str, default: int) -> int:
    """환경변수를 int로 읽기 (변환 실패 시 default)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """애플리케이션 설정 (불변)"""

    DEFAULT_REGION: str = "us-east-1"
    API_TIMEOUT: int = 30
    API_CONNECT_TIMEOUT: int = 10
    API_RETRY_COUNT: int = 3
    MAX_WORKERS: int = 10
    VERBOSE: bool = False


def load_settings() -> Settings:
    """환경변수를 반영한 Settings 생성"""
    defaults = Settings()
    return Settings(
        DEFAULT_REGION=(
            os.environ.get("AWSWEEP_REGION")
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or defaults.DEFAULT_REGION
        ),
        API_TIMEOUT=get_env_int("AWSWEEP_API_TIMEOUT", defaults.API_TIMEOUT),
        API_CONNECT_TIMEOUT=get_env_int("AWSWEEP_API_CONNECT_TIMEOUT", defaults.API_CONNECT_TIMEOUT),
        API_RETRY_COUNT=get_env_int("AWSWEEP_API_RETRY_COUNT", defaults.API_RETRY_COUNT),
        MAX_WORKERS=get_env_int("AWSWEEP_MAX_WORKERS", defaults.MAX_WORKERS),
        VERBOSE=get_env_bool("AWSWEEP_VERBOSE", defaults.VERBOSE),
    )


settings = load_settings()


def get_project_root() -> Path:
    """프로젝트 루트 경로"""
    return Path(__file__).resolve().parent.parent


def get_version() -> str:
    """버전 문자열

    소스 트리에서는 version.txt, 설치된 패키지에서는 배포 메타데이터를 읽습니다.
    """
    version_file = get_project_root() / "version.txt"
    try:
        version = version_file.read_text(encoding="utf-8").strip()
    except OSError:
        version = ""
    if version:
        return version

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def get_default_region() -> str:
    """기본 리전 반환"""
    return settings.DEFAULT_REGION

"""
core/parallel/retry.py - 목록 조회 실패 분류와 재시도 정책

리소스 유형별 목록 조회 작업이 실패했을 때 ErrorCategory로 분류하고,
실행기가 다시 시도할지 결정하는 데 쓰는 규칙을 모아둡니다.

- RetryConfig: 지수 백오프 + full jitter 대기 시간
- categorize_error / get_error_code / is_retryable
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from botocore.exceptions import ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError

from core.exceptions import ConfigError, RegistryError, is_access_denied, is_not_found, is_throttling

from .types import ErrorCategory


@dataclass
class RetryConfig:
    """재시도 설정

    Attributes:
        max_retries: 첫 시도 이후 추가 시도 횟수 (0이면 재시도 안함)
        base_delay: 첫 재시도 전 대기 시간 (초)
        max_delay: 대기 시간 상한 (초)
        exponential_base: 시도마다 곱해지는 배수
        jitter: True면 [0, delay] 구간에서 무작위 대기
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    def get_delay(self, attempt: int) -> float:
        """attempt번째(0부터) 실패 후 대기할 시간 (초)"""
        ceiling = min(self.base_delay * self.exponential_base**attempt, self.max_delay)
        return random.uniform(0, ceiling) if self.jitter else ceiling


DEFAULT_RETRY_CONFIG = RetryConfig()

# 일시적인 서비스 측 실패로 보는 에러 코드
RETRYABLE_ERROR_CODES: set[str] = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
    "SlowDown",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "InternalError",
    "InternalServiceError",
    "RequestTimeout",
    "RequestTimeoutException",
}

EXPIRED_TOKEN_CODES = frozenset({"ExpiredToken", "ExpiredTokenException"})

# 호출별 connect/read timeout 초과 (botocore 타임아웃은 OSError 하위 클래스)
TIMEOUT_ERRORS = (ReadTimeoutError, ConnectTimeoutError, TimeoutError)
NETWORK_ERRORS = (EndpointConnectionError, ConnectionError, OSError)


def _response_code(error: Exception) -> str | None:
    """ClientError/APICallError 응답의 에러 코드 (응답이 없으면 None)"""
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code", "")


def categorize_error(error: Exception) -> ErrorCategory:
    """예외를 ErrorCategory로 분류

    레지스트리/설정 결함은 CONFIGURATION, 응답이 있는 API 에러는 코드로,
    그 외에는 예외 타입으로 판단합니다.
    """
    if isinstance(error, (RegistryError, ConfigError)):
        return ErrorCategory.CONFIGURATION

    if is_throttling(error):
        return ErrorCategory.THROTTLING
    if is_access_denied(error):
        return ErrorCategory.ACCESS_DENIED
    if is_not_found(error):
        return ErrorCategory.NOT_FOUND

    code = _response_code(error)
    if code is not None:
        if "Timeout" in code:
            return ErrorCategory.TIMEOUT
        if code in EXPIRED_TOKEN_CODES:
            return ErrorCategory.EXPIRED_TOKEN
        if code.startswith("Invalid") or "Validation" in code:
            return ErrorCategory.INVALID_REQUEST
        return ErrorCategory.UNKNOWN

    if isinstance(error, TIMEOUT_ERRORS):
        return ErrorCategory.TIMEOUT
    if isinstance(error, NETWORK_ERRORS):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


def get_error_code(error: Exception) -> str:
    """에러 코드 문자열 (응답이 없으면 예외 클래스명)"""
    code = _response_code(error)
    if code is None:
        return type(error).__name__
    return code or "Unknown"


def is_retryable(error: Exception) -> bool:
    """실행기가 다시 시도해도 되는 실패인지 확인

    레지스트리 결함(PathResolutionError 등)과 설정 오류는 재시도하지 않습니다.
    """
    if isinstance(error, (RegistryError, ConfigError)):
        return False

    code = _response_code(error)
    if code is not None:
        return code in RETRYABLE_ERROR_CODES

    return isinstance(error, TIMEOUT_ERRORS + NETWORK_ERRORS)

"""
core/parallel/types.py - 병렬 실행 결과 타입

병렬 작업의 개별 결과와 전체 실행 결과를 표현합니다.

주요 구성 요소:
- ErrorCategory: 에러 카테고리 분류
- TaskError: 실패한 작업의 에러 정보
- TaskResult: 단일 작업 결과
- ParallelExecutionResult: 전체 실행 결과 (Map-Reduce의 Reduce 측)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 카테고리"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REQUEST = "invalid_request"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


# 재시도로 회복 가능한 카테고리
RETRYABLE_CATEGORIES = frozenset({ErrorCategory.THROTTLING, ErrorCategory.NETWORK, ErrorCategory.TIMEOUT})


@dataclass
class TaskError:
    """실패한 작업의 에러 정보

    Attributes:
        identifier: 작업 식별자 (리소스 유형)
        region: AWS 리전
        category: 에러 카테고리
        error_code: 에러 코드 (AWS 에러 코드 또는 예외 클래스명)
        message: 에러 메시지
        retries: 재시도 횟수
        original_exception: 원본 예외
        timestamp: 에러 발생 시각
    """

    identifier: str
    region: str
    category: ErrorCategory
    error_code: str
    message: str
    retries: int = 0
    original_exception: BaseException | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def is_retryable(self) -> bool:
        """재시도 가능한 에러인지 확인"""
        return self.category in RETRYABLE_CATEGORIES

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (로깅/직렬화용)"""
        return {
            "identifier": self.identifier,
            "region": self.region,
            "category": self.category.value,
            "error_code": self.error_code,
            "message": self.message,
            "retries": self.retries,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.identifier}/{self.region}] {self.error_code}: {self.message}"


@dataclass
class TaskResult(Generic[T]):
    """단일 작업 결과"""

    identifier: str
    region: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0

    def __str__(self) -> str:
        status = "OK" if self.success else "FAIL"
        return f"[{self.identifier}/{self.region}] {status} ({self.duration_ms:.0f}ms)"


@dataclass
class ParallelExecutionResult(Generic[T]):
    """전체 병렬 실행 결과

    결과는 작업 제출 순서를 유지합니다.
    """

    results: tuple[TaskResult[T], ...] = ()

    @property
    def successful(self) -> list[TaskResult[T]]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[TaskResult[T]]:
        return [r for r in self.results if not r.success]

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def error_count(self) -> int:
        return len(self.failed)

    @property
    def total_duration_ms(self) -> float:
        return sum(r.duration_ms for r in self.results)

    def has_any_success(self) -> bool:
        return self.success_count > 0

    def has_any_failure(self) -> bool:
        return self.error_count > 0

    def has_failures_only(self) -> bool:
        return self.total_count > 0 and self.success_count == 0

    def get_data(self) -> list[T]:
        """성공한 작업의 데이터 목록 (None 제외)"""
        return [r.data for r in self.results if r.success and r.data is not None]

    def get_flat_data(self) -> list[Any]:
        """성공한 작업의 데이터를 평탄화하여 반환"""
        flat: list[Any] = []
        for data in self.get_data():
            if isinstance(data, list):
                flat.extend(data)
            else:
                flat.append(data)
        return flat

    def get_errors(self) -> list[TaskError]:
        return [r.error for r in self.results if r.error is not None]

    def get_errors_by_category(self) -> dict[ErrorCategory, list[TaskError]]:
        by_category: dict[ErrorCategory, list[TaskError]] = {}
        for error in self.get_errors():
            by_category.setdefault(error.category, []).append(error)
        return by_category

    def get_error_summary(self) -> str:
        """카테고리별 에러 요약 문자열"""
        errors = self.get_errors()
        if not errors:
            return "에러 없음"

        lines = [f"총 {len(errors)}개 작업 실패"]
        for category, items in self.get_errors_by_category().items():
            identifiers = ", ".join(e.identifier for e in items)
            lines.append(f"  [{category.value}] {len(items)}건: {identifiers}")
        return "\n".join(lines)

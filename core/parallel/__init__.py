"""
core/parallel - 병렬 처리 모듈

리소스 유형별 AWS 목록 조회를 병렬로 안전하게 처리합니다.

주요 구성 요소:
- ParallelExecutor: Map-Reduce 패턴 병렬 실행기
- get_client: retry/타임아웃이 적용된 boto3 client

Example:
    from core.parallel import ParallelConfig, ParallelExecutor

    result = ParallelExecutor(ParallelConfig(max_workers=10)).execute([("aws_vpc", list_vpcs)])

    print(f"성공: {result.success_count}, 실패: {result.error_count}")
    if result.error_count > 0:
        print(result.get_error_summary())
"""

from .client import get_client
from .executor import ParallelConfig, ParallelExecutor
from .retry import DEFAULT_RETRY_CONFIG, RetryConfig, categorize_error, get_error_code, is_retryable
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    # Executor
    "ParallelExecutor",
    "ParallelConfig",
    # Client (retry 적용)
    "get_client",
    # Retry / 에러 분류
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "categorize_error",
    "get_error_code",
    "is_retryable",
    # Types
    "ErrorCategory",
    "TaskError",
    "TaskResult",
    "ParallelExecutionResult",
]

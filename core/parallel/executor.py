"""
core/parallel/executor.py - 병렬 작업 실행기

Map-Reduce 패턴으로 독립적인 AWS 작업(리소스 유형별 목록 조회 등)을 병렬 처리합니다.
ThreadPoolExecutor 기반이며, 워커 수 제한과 지수 백오프 재시도를 지원합니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, 재시도)
- ParallelExecutor: 식별자별 작업 병렬 실행기

Example:
    from core.parallel import ParallelConfig, ParallelExecutor

    tasks = [
        ("aws_vpc", lambda: ec2.describe_vpcs()["Vpcs"]),
        ("aws_subnet", lambda: ec2.describe_subnets()["Subnets"]),
    ]
    result = ParallelExecutor(ParallelConfig(max_workers=5), region="ap-northeast-2").execute(tasks)
    all_items = result.get_flat_data()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TypeVar

from core.config import settings

from .retry import DEFAULT_RETRY_CONFIG, RetryConfig, categorize_error, get_error_code, is_retryable
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100). 업스트림 API rate limit 보호용 상한
        retry_config: 재시도 설정
    """

    max_workers: int = settings.MAX_WORKERS
    retry_config: RetryConfig | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100


@dataclass
class _TaskSpec:
    """내부 작업 명세

    Attributes:
        index: 제출 순서 (결과 정렬용)
        identifier: 작업 식별자 (예: 리소스 유형)
        func: 인자 없이 호출되는 작업 함수
    """

    index: int
    identifier: str
    func: Callable[[], object]


class ParallelExecutor:
    """병렬 작업 실행기

    특징:
    - ThreadPoolExecutor 기반 병렬 처리 (워커 수 제한)
    - 재시도 가능한 에러(쓰로틀링, 네트워크, 타임아웃)의 지수 백오프 재시도
    - 작업별 실패 격리: 한 작업의 실패가 다른 작업을 중단시키지 않음
    - 결과는 작업 제출 순서를 유지

    Example:
        executor = ParallelExecutor(ParallelConfig(max_workers=5), region="us-east-1")
        result = executor.execute([("aws_vpc", list_vpcs), ("aws_subnet", list_subnets)])

        for task_result in result.results:
            print(task_result)
    """

    def __init__(self, config: ParallelConfig | None = None, region: str = ""):
        """초기화

        Args:
            config: 병렬 실행 설정 (None이면 기본값)
            region: 결과/에러에 기록할 리전
        """
        self.config = config or ParallelConfig()
        self.region = region
        self._retry_config = self.config.retry_config or DEFAULT_RETRY_CONFIG

    def execute(self, tasks: Sequence[tuple[str, Callable[[], T]]]) -> ParallelExecutionResult[T]:
        """작업 목록을 병렬 실행

        Args:
            tasks: (identifier, func) 목록

        Returns:
            ParallelExecutionResult[T]: 제출 순서대로 정렬된 실행 결과
        """
        specs = [_TaskSpec(index=i, identifier=identifier, func=func) for i, (identifier, func) in enumerate(tasks)]

        if not specs:
            logger.warning("실행할 작업이 없습니다")
            return ParallelExecutionResult()

        logger.info(f"병렬 실행 시작: {len(specs)}개 작업, max_workers={self.config.max_workers}")

        results: dict[int, TaskResult[T]] = {}
        start_time = time.monotonic()

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {executor.submit(self._execute_with_retry, spec): spec for spec in specs}

            for future in as_completed(futures):
                spec = futures[future]
                try:
                    results[spec.index] = future.result()
                except Exception as e:
                    # 예상치 못한 executor 에러
                    logger.error(f"작업 실행 중 예외 [{spec.identifier}]: {e}")
                    _clear_exception_chain(e)
                    results[spec.index] = TaskResult(
                        identifier=spec.identifier,
                        region=self.region,
                        success=False,
                        error=TaskError(
                            identifier=spec.identifier,
                            region=self.region,
                            category=ErrorCategory.UNKNOWN,
                            error_code="ExecutorError",
                            message=str(e),
                            original_exception=e,
                        ),
                    )

        total_time = (time.monotonic() - start_time) * 1000
        exec_result = ParallelExecutionResult(results=tuple(results[i] for i in sorted(results)))

        logger.info(
            f"병렬 실행 완료: 성공 {exec_result.success_count}, 실패 {exec_result.error_count}, 총 {total_time:.0f}ms"
        )

        return exec_result

    def _execute_with_retry(self, spec: _TaskSpec) -> TaskResult[T]:
        """지수 백오프 재시도 로직을 포함한 작업 실행 (워커 스레드 내에서 호출)

        재시도 가능한 에러 발생 시 RetryConfig에 따라 지수 백오프로 재시도하고,
        재시도 불가능한 에러는 즉시 실패 결과로 반환합니다.

        Args:
            spec: 실행할 작업 명세

        Returns:
            TaskResult[T]: 성공 또는 실패 결과
        """
        start_time = time.monotonic()
        last_error: Exception | None = None

        for attempt in range(self._retry_config.max_retries + 1):
            try:
                data = spec.func()
                return TaskResult(
                    identifier=spec.identifier,
                    region=self.region,
                    success=True,
                    data=data,  # type: ignore[arg-type]
                    duration_ms=(time.monotonic() - start_time) * 1000,
                )

            except Exception as e:
                last_error = e

                if not is_retryable(e) or attempt >= self._retry_config.max_retries:
                    logger.warning(f"[{spec.identifier}] 작업 실패 ({get_error_code(e)}): {e}")
                    _clear_exception_chain(e)
                    return TaskResult(
                        identifier=spec.identifier,
                        region=self.region,
                        success=False,
                        error=TaskError(
                            identifier=spec.identifier,
                            region=self.region,
                            category=categorize_error(e),
                            error_code=get_error_code(e),
                            message=str(e),
                            retries=attempt,
                            original_exception=e,
                        ),
                        duration_ms=(time.monotonic() - start_time) * 1000,
                    )

                delay = self._retry_config.get_delay(attempt)
                logger.debug(f"[{spec.identifier}] 시도 {attempt + 1} 실패, {delay:.2f}초 후 재시도...")
                time.sleep(delay)

        # 재시도 소진 (도달하면 안 됨)
        if last_error is not None:
            _clear_exception_chain(last_error)
        return TaskResult(
            identifier=spec.identifier,
            region=self.region,
            success=False,
            error=TaskError(
                identifier=spec.identifier,
                region=self.region,
                category=categorize_error(last_error) if last_error else ErrorCategory.UNKNOWN,
                error_code=get_error_code(last_error) if last_error else "Unknown",
                message="최대 재시도 횟수 초과",
                retries=self._retry_config.max_retries,
                original_exception=last_error,
            ),
            duration_ms=(time.monotonic() - start_time) * 1000,
        )

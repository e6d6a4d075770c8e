"""
core/exceptions.py - 통합 예외 계층 구조

애플리케이션 전체에서 사용되는 예외 클래스들을 정의합니다.
일관된 예외 처리와 에러 메시지를 제공합니다.

예외 계층 구조:
    SweepError (베이스)
    ├── ConfigError (필터 설정 관련)
    │   ├── ConfigReadError
    │   ├── ConfigParseError
    │   │   └── PatternError
    │   └── UnsupportedKindError
    ├── MissingCriteriaError (매칭 조건 없음 신호)
    │   ├── NoIDCriteria
    │   └── NoTagCriteria
    ├── RegistryError (리소스 레지스트리 관련)
    │   ├── UnknownKindError
    │   └── PathResolutionError
    └── APICallError (AWS API 호출)

Usage:
    from core.exceptions import APICallError

    try:
        result = ec2.describe_instances()
    except ClientError as e:
        raise APICallError.from_client_error("ec2", "describe_instances", e)
"""

from typing import Any, Dict, List, Optional, Sequence

# =============================================================================
# 베이스 예외
# =============================================================================


class SweepError(Exception):
    """awsweep 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(SweepError):
    """필터 설정 관련 예외"""

    def __init__(
        self,
        source: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{source}]: {message}"
        super().__init__(full_message, cause)
        self.source = source
        self.details["source"] = source


class ConfigReadError(ConfigError):
    """설정 파일이 없거나 읽을 수 없는 경우"""

    def __init__(self, source: str, cause: Optional[Exception] = None):
        super().__init__(source, "설정 파일을 읽을 수 없습니다", cause)


class ConfigParseError(ConfigError):
    """설정 문서 형식이 잘못된 경우"""

    pass


class PatternError(ConfigParseError):
    """설정에 포함된 정규식을 컴파일할 수 없는 경우"""

    def __init__(
        self,
        source: str,
        kind: str,
        pattern: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(source, f"잘못된 정규식 [{kind}]: {pattern!r}", cause)
        self.kind = kind
        self.pattern = pattern
        self.details.update({"kind": kind, "pattern": pattern})


class UnsupportedKindError(ConfigError):
    """지원하지 않는 리소스 유형이 설정에 포함된 경우"""

    def __init__(self, kinds: Sequence[str], source: str = "filter"):
        super().__init__(source, f"지원하지 않는 리소스 유형: {', '.join(kinds)}")
        self.kinds: List[str] = list(kinds)
        self.details["kinds"] = self.kinds


# =============================================================================
# 매칭 조건 없음 신호
# =============================================================================


class MissingCriteriaError(SweepError):
    """리소스 유형에 특정 매칭 조건이 설정되지 않았음을 알리는 신호

    매칭 실패가 아니라 "조건 없음"을 구분하기 위한 제어 신호입니다.
    Filter.matches()가 내부에서 소비합니다.
    """

    criteria = "criteria"

    def __init__(self, kind: str):
        super().__init__(f"{kind}: {self.criteria} 조건이 설정되지 않았습니다")
        self.kind = kind


class NoIDCriteria(MissingCriteriaError):
    """ID 정규식 조건 없음"""

    criteria = "Ids"


class NoTagCriteria(MissingCriteriaError):
    """태그 조건 없음"""

    criteria = "Tags"


# =============================================================================
# 레지스트리 관련 예외
# =============================================================================


class RegistryError(SweepError):
    """리소스 레지스트리 관련 예외"""

    pass


class UnknownKindError(RegistryError):
    """레지스트리에 없는 리소스 유형 조회"""

    def __init__(self, kind: str):
        super().__init__(f"등록되지 않은 리소스 유형: {kind}")
        self.kind = kind


class PathResolutionError(RegistryError):
    """디스크립터의 응답 경로가 실제 API 응답 구조와 맞지 않는 경우

    일시적인 오류가 아니라 레지스트리 정의 결함을 의미합니다.
    """

    def __init__(self, kind: str, path: Sequence[str], step: str, reason: str):
        super().__init__(f"응답 경로 해석 실패 [{kind}] {'.'.join(path)} ({step}): {reason}")
        self.kind = kind
        self.path = list(path)
        self.step = step
        self.details.update({"kind": kind, "path": self.path, "step": step})


# =============================================================================
# AWS API 호출 관련 예외
# =============================================================================


class APICallError(SweepError):
    """AWS API 호출 관련 예외

    boto3/botocore의 ClientError를 래핑하여 일관된 예외 처리를 제공합니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"{service}.{operation}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "error_code": error_code,
            }
        )

    @property
    def response(self) -> Dict[str, Any]:
        """ClientError와 같은 형태의 응답 (에러 분류 유틸리티 호환용)"""
        return {"Error": {"Code": self.error_code or "", "Message": self.error_message or ""}}

    @classmethod
    def from_client_error(
        cls,
        service: str,
        operation: str,
        client_error: Exception,
    ) -> "APICallError":
        """botocore.exceptions.ClientError로부터 생성

        Args:
            service: AWS 서비스 이름
            operation: API 작업 이름
            client_error: ClientError 예외

        Returns:
            APICallError 인스턴스
        """
        error_code = None
        error_message = None

        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")

        return cls(
            service=service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedAccess",
    "UnauthorizedOperation",
}

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}

NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "NotFoundException",
    "NoSuchEntity",
    "NoSuchBucket",
    "NoSuchTagSet",
    "NoSuchTagSetError",
    "InvalidInstanceID.NotFound",
}


def _error_code(error: Exception) -> str:
    if isinstance(error, APICallError):
        return error.error_code or ""
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "")
    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인"""
    return _error_code(error) in ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return _error_code(error) in THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    return _error_code(error) in NOT_FOUND_CODES


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, SweepError):
        return str(error)

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_info = response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))

        friendly_messages = {
            "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
            "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
            "InvalidClientTokenId": "잘못된 자격 증명입니다.",
            "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)

"""
core/resource/config.py - 필터 설정 모델 및 YAML 로더

삭제 대상 리소스를 고르는 필터 설정을 YAML 문서에서 읽어옵니다.
모든 정규식은 로드 시점에 컴파일되어, 잘못된 패턴은 스캔 시작 전에 실패합니다.

문서 형식:
    aws_instance:
      Ids:
        - "^foo.*"
      Tags:
        Owner: "^team-a$"
      Created:
        After: 2024-01-01T00:00:00Z
        Before: 2024-06-30T00:00:00Z
    aws_security_group:          # 조건 없음 = 해당 유형 전체 선택

Usage:
    from core.resource.config import load_filter_config, MemoryFileReader

    config = load_filter_config("filter.yml")

    # 테스트
    reader = MemoryFileReader({"filter.yml": "aws_vpc:\\n  Ids: ['^foo']"})
    config = load_filter_config("filter.yml", reader=reader)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Protocol

import yaml  # type: ignore[import-untyped]

from core.exceptions import ConfigParseError, ConfigReadError, PatternError

logger = logging.getLogger(__name__)

# 엔트리에서 허용되는 키
ENTRY_KEYS = {"Ids", "Tags", "Created"}
CREATED_KEYS = {"After", "Before"}


# =============================================================================
# 파일 읽기 경계
# =============================================================================


class FileReader(Protocol):
    """설정 문서 읽기 경계 (테스트 시 메모리 구현으로 대체)"""

    def read_text(self, path: str) -> str: ...


class LocalFileReader:
    """로컬 파일 시스템에서 읽기"""

    def read_text(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigReadError(path, cause=e) from e


class MemoryFileReader:
    """메모리 내 문서에서 읽기 (테스트용)"""

    def __init__(self, files: Mapping[str, str] | None = None):
        self.files = dict(files or {})

    def read_text(self, path: str) -> str:
        try:
            return self.files[path]
        except KeyError as e:
            raise ConfigReadError(path, cause=FileNotFoundError(path)) from e


# =============================================================================
# 설정 모델
# =============================================================================


def _to_utc(value: datetime) -> datetime:
    """naive datetime은 UTC로 간주"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class CreatedRange:
    """생성 시각 범위 (경계값 미포함)"""

    after: datetime | None = None
    before: datetime | None = None

    def contains(self, created: datetime) -> bool:
        created = _to_utc(created)
        if self.after is not None and not created > self.after:
            return False
        if self.before is not None and not created < self.before:
            return False
        return True


@dataclass(frozen=True)
class KindFilterEntry:
    """리소스 유형 하나에 대한 선택 조건

    Attributes:
        id_patterns: ID 정규식 목록 (OR)
        tag_patterns: 태그 키 -> 값 정규식 (OR)
        created: 생성 시각 범위
    """

    id_patterns: tuple[re.Pattern[str], ...] = ()
    tag_patterns: dict[str, re.Pattern[str]] = field(default_factory=dict)
    created: CreatedRange | None = None

    @property
    def has_criteria(self) -> bool:
        """ID 또는 태그 조건이 하나라도 있는지"""
        return bool(self.id_patterns or self.tag_patterns)


class FilterConfig(Mapping[str, KindFilterEntry]):
    """리소스 유형 -> KindFilterEntry 불변 매핑 (문서 순서 유지)"""

    def __init__(self, entries: Mapping[str, KindFilterEntry] | None = None, source: str = "<memory>"):
        self._entries: dict[str, KindFilterEntry] = dict(entries or {})
        self.source = source

    def __getitem__(self, kind: str) -> KindFilterEntry:
        return self._entries[kind]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FilterConfig(source={self.source!r}, kinds={list(self._entries)})"


# =============================================================================
# 파싱
# =============================================================================


class _FilterLoader(yaml.SafeLoader):
    """정수/실수/불리언 스칼라를 원문 그대로 문자열로 읽는 SafeLoader

    `Version: 2`, `- 123` 같은 값도 정규식 문자열로 취급합니다.
    """


def _construct_raw_scalar(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


for _tag in ("tag:yaml.org,2002:int", "tag:yaml.org,2002:float", "tag:yaml.org,2002:bool"):
    _FilterLoader.add_constructor(_tag, _construct_raw_scalar)


def _compile(pattern: Any, kind: str, source: str) -> re.Pattern[str]:
    if not isinstance(pattern, str):
        raise ConfigParseError(source, f"{kind}: 정규식은 문자열이어야 합니다 ({pattern!r})")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError(source, kind, pattern, cause=e) from e


def _parse_timestamp(value: Any, kind: str, key: str, source: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return _to_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError as e:
            raise ConfigParseError(source, f"{kind}.Created.{key}: 잘못된 시각 형식 {value!r}", e) from e
    raise ConfigParseError(source, f"{kind}.Created.{key}: 잘못된 시각 형식 {value!r}")


def _parse_created(raw: Any, kind: str, source: str) -> CreatedRange | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigParseError(source, f"{kind}.Created는 매핑이어야 합니다")
    unknown = set(raw) - CREATED_KEYS
    if unknown:
        raise ConfigParseError(source, f"{kind}.Created: 알 수 없는 필드 {sorted(map(str, unknown))}")
    return CreatedRange(
        after=_parse_timestamp(raw.get("After"), kind, "After", source),
        before=_parse_timestamp(raw.get("Before"), kind, "Before", source),
    )


def _parse_entry(kind: str, raw: Any, source: str) -> KindFilterEntry:
    if raw is None:
        return KindFilterEntry()
    if not isinstance(raw, dict):
        raise ConfigParseError(source, f"{kind}: 엔트리는 매핑이어야 합니다")

    unknown = set(raw) - ENTRY_KEYS
    if unknown:
        raise ConfigParseError(source, f"{kind}: 알 수 없는 필드 {sorted(map(str, unknown))}")

    ids = raw.get("Ids") or []
    if not isinstance(ids, list):
        raise ConfigParseError(source, f"{kind}.Ids는 목록이어야 합니다")

    tags = raw.get("Tags") or {}
    if not isinstance(tags, dict):
        raise ConfigParseError(source, f"{kind}.Tags는 매핑이어야 합니다")

    return KindFilterEntry(
        id_patterns=tuple(_compile(p, kind, source) for p in ids),
        tag_patterns={str(key): _compile(value, kind, source) for key, value in tags.items()},
        created=_parse_created(raw.get("Created"), kind, source),
    )


def parse_filter_config(text: str, source: str = "<memory>") -> FilterConfig:
    """YAML 문자열을 FilterConfig로 파싱

    Args:
        text: YAML 문서
        source: 에러 메시지에 표시할 출처

    Returns:
        FilterConfig

    Raises:
        ConfigParseError: 문서 형식 오류
        PatternError: 정규식 컴파일 실패
    """
    try:
        data = yaml.load(text, Loader=_FilterLoader)
    except yaml.YAMLError as e:
        raise ConfigParseError(source, "YAML 파싱 실패", e) from e

    if data is None:
        return FilterConfig(source=source)
    if not isinstance(data, dict):
        raise ConfigParseError(source, "최상위는 리소스 유형 -> 조건 매핑이어야 합니다")

    entries = {str(kind): _parse_entry(str(kind), raw, source) for kind, raw in data.items()}
    return FilterConfig(entries, source=source)


def load_filter_config(path: str, reader: FileReader | None = None) -> FilterConfig:
    """필터 설정 파일 로드

    Args:
        path: 설정 파일 경로
        reader: 파일 읽기 경계 (None이면 로컬 파일 시스템)

    Returns:
        FilterConfig

    Raises:
        ConfigReadError: 파일을 읽을 수 없음
        ConfigParseError: 문서 형식 오류
    """
    reader = reader or LocalFileReader()
    config = parse_filter_config(reader.read_text(path), source=path)
    logger.info(f"필터 설정 로드: {path} ({len(config)}개 리소스 유형)")
    return config

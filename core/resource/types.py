"""
core/resource/types.py - 리소스 디스크립터와 정규화 리소스 타입

리소스 유형마다 목록 조회 응답 구조가 다르기 때문에,
디스크립터에 "어떻게 조회하고 응답의 어디에 항목이 있는지"를 선언하고
모든 항목을 NormalizedResource 하나의 형태로 투영합니다.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .filter import Filter

# 목록 조회 호출: list_input을 키워드 인자로 받아 응답 페이지들을 반환
ListCall = Callable[..., Iterable[Mapping[str, Any]]]

# 선택기: (디스크립터, 응답 페이지, 필터) -> 매칭된 리소스 목록
Selector = Callable[["ResourceKindDescriptor", Mapping[str, Any], "Filter"], list["NormalizedResource"]]


@dataclass(frozen=True)
class NormalizedResource:
    """모든 리소스 유형이 투영되는 공통 레코드

    Attributes:
        kind: 리소스 유형 (예: "aws_instance")
        id: 삭제 키 필드에서 추출한 식별자
        tags: 태그 키 -> 값 (태그가 없으면 빈 dict)
        attributes: 삭제 시점에 사용할 나머지 원본 필드 (불투명)
        created: 생성 시각 (알 수 없으면 None)
    """

    kind: str
    id: str
    tags: dict[str, str] = field(default_factory=dict)
    attributes: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    created: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """출력용 딕셔너리 (attributes 제외)"""
        return {
            "kind": self.kind,
            "id": self.id,
            "tags": dict(self.tags),
            "created": self.created.isoformat() if self.created else None,
        }


@dataclass(frozen=True)
class ResourceKindDescriptor:
    """리소스 유형 하나를 조회/정규화하는 방법

    Attributes:
        kind: 고유한 리소스 유형 식별자 (Terraform AWS provider 리소스 이름)
        response_path: 응답에서 항목 목록까지의 필드 이름 경로
        deletion_key: 항목에서 식별자를 담은 필드 이름
        list_call: 목록 조회 호출 (응답 페이지 이터러블 반환)
        selector: 응답 페이지에서 매칭 리소스를 선택하는 함수
        list_input: 목록 조회 API 파라미터
        tags_field: 항목의 태그 필드 이름 (목록 조회 시 태그가 없으면 None)
        created_field: 항목의 생성 시각 필드 이름 (없으면 None)
    """

    kind: str
    response_path: tuple[str, ...]
    deletion_key: str
    list_call: ListCall = field(compare=False, repr=False)
    selector: Selector = field(compare=False, repr=False)
    list_input: Mapping[str, Any] = field(default_factory=dict, compare=False)
    tags_field: str | None = "Tags"
    created_field: str | None = None

    def list_pages(self) -> Iterable[Mapping[str, Any]]:
        """목록 조회 호출 실행"""
        return self.list_call(**self.list_input)

    def select(self, response: Mapping[str, Any], resource_filter: Filter) -> list[NormalizedResource]:
        """응답 페이지 하나에서 매칭 리소스 선택"""
        return self.selector(self, response, resource_filter)

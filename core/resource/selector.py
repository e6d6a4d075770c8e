"""
core/resource/selector.py - 응답 정규화 및 리소스 선택

리소스 유형마다 다른 목록 조회 응답을 디스크립터의 response_path로 탐색하고,
각 항목을 NormalizedResource로 투영한 뒤 Filter로 매칭 여부를 판단합니다.

응답 구조의 차이(경로, 태그 표현, 생성 시각 필드)는 이 모듈에서만 다루며,
매칭 판단은 항상 Filter.matches()에 위임합니다.

주요 구성 요소:
- resolve_path: 응답에서 항목 목록까지 탐색
- extract_tags / extract_created: 태그/생성 시각 정규화
- normalize: 항목 -> NormalizedResource
- select_generic: 범용 선택기
- make_secondary_tags_selector, select_route53_zone, select_kms_alias,
  make_kms_key_selector: 유형별 선택기
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from core.exceptions import PathResolutionError, is_not_found

from .types import NormalizedResource, ResourceKindDescriptor, Selector

if TYPE_CHECKING:
    from .filter import Filter

logger = logging.getLogger(__name__)

# 태그 목록 항목의 키/값 필드 이름 쌍 (EC2 계열: Key/Value, KMS: TagKey/TagValue)
TAG_KEY_FIELDS = (("Key", "Value"), ("TagKey", "TagValue"))


# =============================================================================
# 응답 탐색
# =============================================================================


def resolve_path(kind: str, response: Mapping[str, Any], path: Sequence[str]) -> list[Any]:
    """응답에서 response_path를 따라 항목 목록을 찾음

    중간 값이 목록이면 각 원소로 펼쳐서 탐색하고
    (예: ["Reservations", "Instances"]), 최종 값은 반드시 목록이어야 합니다.

    Args:
        kind: 리소스 유형 (에러 메시지용)
        response: 목록 조회 응답 페이지
        path: 필드 이름 경로

    Returns:
        항목 목록 (응답 순서 유지)

    Raises:
        PathResolutionError: 필드가 없거나 최종 값이 목록이 아님
    """
    if not path:
        raise PathResolutionError(kind, path, "<root>", "경로가 비어 있습니다")

    nodes: list[Any] = [response]
    for depth, name in enumerate(path):
        is_last = depth == len(path) - 1
        next_nodes: list[Any] = []
        for node in nodes:
            if not isinstance(node, Mapping):
                raise PathResolutionError(kind, path, name, f"매핑이 아닌 값 ({type(node).__name__})")
            if name not in node:
                raise PathResolutionError(kind, path, name, "필드가 없습니다")
            value = node[name]
            if isinstance(value, list):
                next_nodes.extend(value)
            elif not is_last and isinstance(value, Mapping):
                next_nodes.append(value)
            else:
                raise PathResolutionError(kind, path, name, f"목록이 아닌 값 ({type(value).__name__})")
        nodes = next_nodes
    return nodes


# =============================================================================
# 필드 정규화
# =============================================================================


def extract_tags(value: Any) -> dict[str, str]:
    """태그 표현을 dict로 변환

    - [{"Key": k, "Value": v}, ...] 또는 [{"TagKey": k, "TagValue": v}, ...] -> {k: v}
    - {k: v} -> 복사본
    - None -> {}
    """
    if not value:
        return {}
    if isinstance(value, Mapping):
        return {str(k): "" if v is None else str(v) for k, v in value.items()}

    tags: dict[str, str] = {}
    if isinstance(value, list):
        for tag in value:
            if not isinstance(tag, Mapping):
                continue
            for key_field, value_field in TAG_KEY_FIELDS:
                if key_field in tag:
                    tag_value = tag.get(value_field)
                    tags[str(tag[key_field])] = "" if tag_value is None else str(tag_value)
                    break
    return tags


def extract_created(value: Any) -> datetime | None:
    """생성 시각 값을 timezone-aware datetime으로 변환 (변환 불가 시 None)"""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"생성 시각 파싱 실패: {value!r}")
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def normalize(
    descriptor: ResourceKindDescriptor,
    item: Mapping[str, Any],
    tags: dict[str, str] | None = None,
    resource_id: str | None = None,
    created: datetime | None = None,
) -> NormalizedResource:
    """응답 항목 하나를 NormalizedResource로 투영

    Args:
        descriptor: 리소스 유형 디스크립터
        item: 응답 항목
        tags: 별도 조회한 태그 (None이면 tags_field에서 추출)
        resource_id: 유형별로 유도한 식별자 (None이면 deletion_key 필드)
        created: 별도 조회한 생성 시각 (None이면 created_field에서 추출)

    Raises:
        PathResolutionError: 항목에 deletion_key 필드가 없음
    """
    if not isinstance(item, Mapping):
        raise PathResolutionError(
            descriptor.kind, descriptor.response_path, "<item>", f"매핑이 아닌 항목 ({type(item).__name__})"
        )

    if resource_id is None:
        raw_id = item.get(descriptor.deletion_key)
        if raw_id is None or raw_id == "":
            raise PathResolutionError(
                descriptor.kind, descriptor.response_path, descriptor.deletion_key, "식별자 필드가 없습니다"
            )
        resource_id = str(raw_id)

    if tags is None:
        tags = extract_tags(item.get(descriptor.tags_field)) if descriptor.tags_field else {}

    if created is None and descriptor.created_field:
        created = extract_created(item.get(descriptor.created_field))

    attributes = {k: v for k, v in item.items() if k != descriptor.tags_field}

    return NormalizedResource(
        kind=descriptor.kind,
        id=resource_id,
        tags=tags,
        attributes=attributes,
        created=created,
    )


# =============================================================================
# 선택기
# =============================================================================


def select_generic(
    descriptor: ResourceKindDescriptor,
    response: Mapping[str, Any],
    resource_filter: Filter,
) -> list[NormalizedResource]:
    """범용 선택기: 경로 탐색 -> 정규화 -> 매칭"""
    selected = []
    for item in resolve_path(descriptor.kind, response, descriptor.response_path):
        resource = normalize(descriptor, item)
        if resource_filter.matches(resource):
            selected.append(resource)
    return selected


def make_secondary_tags_selector(fetch_tags: Callable[[Mapping[str, Any]], Any]) -> Selector:
    """목록 조회 응답에 태그가 없어 항목별 추가 호출로 태그를 가져오는 선택기

    fetch_tags가 반환한 태그 표현은 extract_tags()로 정규화합니다.
    태그가 없다는 의미의 not-found 에러(NoSuchTagSet 등)는 빈 태그로 처리합니다.

    Args:
        fetch_tags: 항목 -> 태그 표현 (목록 또는 매핑)
    """

    def select(
        descriptor: ResourceKindDescriptor,
        response: Mapping[str, Any],
        resource_filter: Filter,
    ) -> list[NormalizedResource]:
        selected = []
        for item in resolve_path(descriptor.kind, response, descriptor.response_path):
            try:
                tags = extract_tags(fetch_tags(item))
            except Exception as e:
                if not is_not_found(e):
                    raise
                tags = {}
            resource = normalize(descriptor, item, tags=tags)
            if resource_filter.matches(resource):
                selected.append(resource)
        return selected

    return select


def select_route53_zone(
    descriptor: ResourceKindDescriptor,
    response: Mapping[str, Any],
    resource_filter: Filter,
) -> list[NormalizedResource]:
    """Route53 호스팅 영역: "/hostedzone/Z123" -> "Z123" """
    selected = []
    for item in resolve_path(descriptor.kind, response, descriptor.response_path):
        raw_id = str(item.get(descriptor.deletion_key) or "")
        resource = normalize(descriptor, item, resource_id=raw_id.rsplit("/", 1)[-1] or None)
        if resource_filter.matches(resource):
            selected.append(resource)
    return selected


def select_kms_alias(
    descriptor: ResourceKindDescriptor,
    response: Mapping[str, Any],
    resource_filter: Filter,
) -> list[NormalizedResource]:
    """KMS 별칭: AWS 관리형 별칭(alias/aws/...)은 후보에서 제외"""
    selected = []
    for item in resolve_path(descriptor.kind, response, descriptor.response_path):
        if str(item.get("AliasName", "")).startswith("alias/aws/"):
            continue
        resource = normalize(descriptor, item)
        if resource_filter.matches(resource):
            selected.append(resource)
    return selected


def make_kms_key_selector(describe_key: Callable[..., Any], list_resource_tags: Callable[..., Any]) -> Selector:
    """KMS 키 선택기

    ListKeys 응답에는 키 ID/ARN만 있으므로 키마다 DescribeKey로 메타데이터를 조회하여
    AWS 관리형 키와 삭제 예정 키를 제외하고, ListResourceTags로 태그를 가져옵니다.

    Args:
        describe_key: kms.describe_key
        list_resource_tags: kms.list_resource_tags
    """

    def select(
        descriptor: ResourceKindDescriptor,
        response: Mapping[str, Any],
        resource_filter: Filter,
    ) -> list[NormalizedResource]:
        selected = []
        for item in resolve_path(descriptor.kind, response, descriptor.response_path):
            key_id = item.get(descriptor.deletion_key)
            metadata = describe_key(KeyId=key_id).get("KeyMetadata", {})
            if metadata.get("KeyManager") == "AWS" or metadata.get("KeyState") == "PendingDeletion":
                continue

            tags = extract_tags(list_resource_tags(KeyId=key_id).get("Tags"))
            resource = normalize(
                descriptor,
                {**item, **metadata},
                tags=tags,
                created=extract_created(metadata.get("CreationDate")),
            )
            if resource_filter.matches(resource):
                selected.append(resource)
        return selected

    return select

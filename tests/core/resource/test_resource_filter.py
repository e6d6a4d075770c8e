"""
tests/core/resource/test_resource_filter.py - Filter 매칭 엔진 테스트
"""

from datetime import datetime, timezone

import pytest

from core.exceptions import MissingCriteriaError, NoIDCriteria, NoTagCriteria
from core.resource.config import CreatedRange, FilterConfig, KindFilterEntry
from core.resource.filter import Filter
from core.resource.types import NormalizedResource

ID_ONLY = """
aws_instance:
  Ids:
    - "^foo.*"
"""

TAGS_ONLY = """
aws_vpc:
  Tags:
    foo: bar
    bla: blub
"""

BOTH = """
aws_subnet:
  Ids:
    - "^subnet-keep"
  Tags:
    Owner: "^team-a$"
"""

SELECT_ALL = """
aws_security_group:
"""


def _resource(kind, resource_id="any-id", tags=None, created=None):
    return NormalizedResource(kind=kind, id=resource_id, tags=tags or {}, created=created)


class TestMatchId:
    """match_id 테스트"""

    def test_prefix_match(self, make_filter):
        """^foo.* 패턴과 일치하는 ID"""
        f = make_filter(ID_ONLY)

        assert f.match_id(_resource("aws_instance", "foo-lala")) is True

    def test_no_match(self, make_filter):
        """접두사가 다른 ID는 불일치"""
        f = make_filter(ID_ONLY)

        assert f.match_id(_resource("aws_instance", "lala-foo")) is False

    def test_unanchored_search(self, make_filter):
        """앵커가 없는 패턴은 ID 중간에서도 일치"""
        f = make_filter("aws_instance:\n  Ids: ['foo']")

        assert f.match_id(_resource("aws_instance", "lala-foo")) is True

    def test_any_pattern_matches(self, make_filter):
        """여러 패턴 중 하나만 일치해도 True (OR)"""
        f = make_filter("aws_instance:\n  Ids: ['^a-', '^b-']")

        assert f.match_id(_resource("aws_instance", "b-1")) is True
        assert f.match_id(_resource("aws_instance", "c-1")) is False

    def test_no_id_criteria_signal(self, make_filter):
        """ID 조건이 없으면 NoIDCriteria 신호"""
        f = make_filter(TAGS_ONLY)

        with pytest.raises(NoIDCriteria) as exc_info:
            f.match_id(_resource("aws_vpc", "vpc-1"))

        assert exc_info.value.kind == "aws_vpc"
        assert isinstance(exc_info.value, MissingCriteriaError)

    def test_unconfigured_kind_signal(self, make_filter):
        """설정에 없는 유형도 조건 없음 신호"""
        f = make_filter(ID_ONLY)

        with pytest.raises(NoIDCriteria):
            f.match_id(_resource("aws_vpc", "vpc-1"))


class TestMatchTags:
    """match_tags 테스트"""

    @pytest.mark.parametrize(
        "tags,expected",
        [
            ({"foo": "bar"}, True),
            ({"bla": "blub"}, True),
            ({"foo": "baz"}, False),
            ({"blub": "bla"}, False),
        ],
    )
    def test_tag_cases(self, make_filter, tags, expected):
        """키는 정확히 일치, 값은 정규식"""
        f = make_filter(TAGS_ONLY)

        assert f.match_tags(_resource("aws_vpc", tags=tags)) is expected

    def test_value_regex(self, make_filter):
        """값에 정규식 적용"""
        f = make_filter("aws_vpc:\n  Tags:\n    Env: '^dev-[0-9]+$'")

        assert f.match_tags(_resource("aws_vpc", tags={"Env": "dev-42"})) is True
        assert f.match_tags(_resource("aws_vpc", tags={"Env": "prod-42"})) is False

    def test_key_is_not_regex(self, make_filter):
        """태그 키는 정규식이 아님"""
        f = make_filter("aws_vpc:\n  Tags:\n    'Own.*': '.*'")

        assert f.match_tags(_resource("aws_vpc", tags={"Owner": "x"})) is False

    def test_no_tag_criteria_signal(self, make_filter):
        """태그 조건이 없으면 NoTagCriteria 신호"""
        f = make_filter(ID_ONLY)

        with pytest.raises(NoTagCriteria):
            f.match_tags(_resource("aws_instance", tags={"foo": "bar"}))


class TestMatchCreated:
    """match_created 테스트"""

    def _filter(self, after=None, before=None):
        entry = KindFilterEntry(created=CreatedRange(after=after, before=before))
        return Filter(FilterConfig({"aws_ami": entry}))

    def test_no_range(self, make_filter):
        """범위가 없으면 항상 True"""
        f = make_filter(SELECT_ALL)

        assert f.match_created(_resource("aws_security_group")) is True

    def test_strictly_after(self):
        """After 경계값은 미포함"""
        boundary = datetime(2024, 1, 1, tzinfo=timezone.utc)
        f = self._filter(after=boundary)

        assert f.match_created(_resource("aws_ami", created=datetime(2024, 1, 2, tzinfo=timezone.utc))) is True
        assert f.match_created(_resource("aws_ami", created=boundary)) is False

    def test_strictly_before(self):
        """Before 경계값은 미포함"""
        boundary = datetime(2024, 6, 1, tzinfo=timezone.utc)
        f = self._filter(before=boundary)

        assert f.match_created(_resource("aws_ami", created=datetime(2024, 5, 1, tzinfo=timezone.utc))) is True
        assert f.match_created(_resource("aws_ami", created=boundary)) is False

    def test_unknown_creation_time(self):
        """범위가 있는데 생성 시각을 모르면 False"""
        f = self._filter(after=datetime(2024, 1, 1, tzinfo=timezone.utc))

        assert f.match_created(_resource("aws_ami")) is False

    def test_naive_created_treated_as_utc(self):
        """naive datetime은 UTC로 비교"""
        f = self._filter(after=datetime(2024, 1, 1, tzinfo=timezone.utc))

        assert f.match_created(_resource("aws_ami", created=datetime(2024, 3, 1))) is True


class TestMatches:
    """matches 조합 정책 테스트"""

    def test_unconfigured_kind_never_matches(self, make_filter):
        """설정에 없는 유형은 선택하지 않음"""
        f = make_filter(SELECT_ALL)

        assert f.matches(_resource("aws_vpc", "vpc-1", {"foo": "bar"})) is False

    def test_tags_only_matching_tag(self, make_filter):
        """태그 조건만 있을 때: 태그 일치 -> 선택"""
        f = make_filter(TAGS_ONLY)

        assert f.matches(_resource("aws_vpc", "whatever", {"foo": "bar"})) is True

    def test_tags_only_non_matching_tag(self, make_filter):
        """태그 조건만 있을 때: 태그 불일치 -> 제외"""
        f = make_filter(TAGS_ONLY)

        assert f.matches(_resource("aws_vpc", "whatever", {"foo": "baz"})) is False

    def test_tags_only_without_tags(self, make_filter):
        """태그 조건만 있을 때: 태그 없는 리소스 -> 제외"""
        f = make_filter(TAGS_ONLY)

        assert f.matches(_resource("aws_vpc", "whatever")) is False

    def test_ids_only_matching_id(self, make_filter):
        """ID 조건만 있을 때: 태그와 무관하게 ID 일치 -> 선택"""
        f = make_filter(ID_ONLY)

        assert f.matches(_resource("aws_instance", "foo-1")) is True
        assert f.matches(_resource("aws_instance", "foo-1", {"any": "tag"})) is True

    def test_ids_only_non_matching_id(self, make_filter):
        """ID 조건만 있을 때: ID 불일치 -> 제외 (태그가 있어도)"""
        f = make_filter(ID_ONLY)

        assert f.matches(_resource("aws_instance", "bar-1", {"foo": "bar"})) is False

    @pytest.mark.parametrize(
        "resource_id,tags,expected",
        [
            ("subnet-keep-1", {}, True),
            ("subnet-other", {"Owner": "team-a"}, True),
            ("subnet-keep-2", {"Owner": "team-b"}, True),
            ("subnet-other", {"Owner": "team-b"}, False),
            ("subnet-other", {}, False),
        ],
    )
    def test_both_criteria_or(self, make_filter, resource_id, tags, expected):
        """ID와 태그 조건이 모두 있으면 OR"""
        f = make_filter(BOTH)

        assert f.matches(_resource("aws_subnet", resource_id, tags)) is expected

    def test_select_all(self, make_filter):
        """조건 없는 엔트리는 모든 리소스 선택"""
        f = make_filter(SELECT_ALL)

        assert f.matches(_resource("aws_security_group", "any-id", {"foo": "bar"})) is True
        assert f.matches(_resource("aws_security_group", "any-id")) is True

    def test_select_all_with_empty_lists(self, make_filter):
        """빈 Ids/Tags도 조건 없음으로 취급"""
        f = make_filter("aws_security_group:\n  Ids: []\n  Tags: {}")

        assert f.matches(_resource("aws_security_group", "sg-1")) is True

    def test_created_range_is_anded(self, make_filter):
        """Created 범위는 ID/태그 결과와 AND"""
        f = make_filter("aws_ami:\n  Ids: ['^ami-']\n  Created:\n    After: 2024-01-01T00:00:00Z\n")

        old = datetime(2023, 1, 1, tzinfo=timezone.utc)
        new = datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert f.matches(_resource("aws_ami", "ami-1", created=new)) is True
        assert f.matches(_resource("aws_ami", "ami-1", created=old)) is False
        assert f.matches(_resource("aws_ami", "ami-1")) is False
        assert f.matches(_resource("aws_ami", "snap-1", created=new)) is False

    def test_created_range_with_select_all(self, make_filter):
        """조건 없는 엔트리 + Created 범위: 범위 안의 리소스만 선택"""
        f = make_filter("aws_ebs_volume:\n  Created:\n    Before: 2024-01-01T00:00:00Z\n")

        assert f.matches(_resource("aws_ebs_volume", "vol-1", created=datetime(2023, 6, 1, tzinfo=timezone.utc)))
        assert not f.matches(_resource("aws_ebs_volume", "vol-2", created=datetime(2024, 6, 1, tzinfo=timezone.utc)))


class TestResourceTypes:
    """resource_types 테스트"""

    def test_document_order(self, make_filter):
        """문서 순서 유지"""
        f = make_filter("aws_vpc:\naws_instance:\naws_ami:\n")

        assert f.resource_types() == ["aws_vpc", "aws_instance", "aws_ami"]

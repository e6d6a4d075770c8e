"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹, 필터 설정, 디스크립터 생성 헬퍼를 제공합니다.

Usage:
    def test_something(make_filter, make_descriptor):
        resource_filter = make_filter("aws_vpc:\\n  Ids: ['^vpc-']")
        descriptor = make_descriptor("aws_vpc", ["Vpcs"], "VpcId", pages=[{"Vpcs": []}])
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    # 테스트용 환경 변수 설정
    os.environ.setdefault("AWS_DEFAULT_REGION", "ap-northeast-2")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

    yield


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def mock_ec2_client():
    """EC2 클라이언트 모킹 (describe_instances는 paginator로 조회)"""
    mock_client = MagicMock()

    page = {
        "Reservations": [
            {
                "Instances": [
                    {
                        "InstanceId": "i-1234567890abcdef0",
                        "InstanceType": "t3.micro",
                        "State": {"Name": "running"},
                        "Tags": [{"Key": "Name", "Value": "test-instance"}],
                        "LaunchTime": "2024-01-01T00:00:00Z",
                    }
                ]
            }
        ]
    }

    mock_client.can_paginate.return_value = True
    mock_paginator = MagicMock()
    mock_paginator.paginate.return_value = [page]
    mock_client.get_paginator.return_value = mock_paginator

    yield mock_client


@pytest.fixture
def mock_clients():
    """서비스 이름 -> MagicMock client를 돌려주는 AWSClients 대역"""
    clients: Dict[str, MagicMock] = {}

    def client(service: str) -> MagicMock:
        if service not in clients:
            clients[service] = MagicMock(name=f"{service}-client")
        return clients[service]

    holder = MagicMock()
    holder.client.side_effect = client
    holder.region = "ap-northeast-2"
    holder.clients = clients
    return holder


# =============================================================================
# 필터 / 디스크립터 헬퍼
# =============================================================================


@pytest.fixture
def make_filter():
    """YAML 문자열로 Filter 생성"""
    from core.resource.config import parse_filter_config
    from core.resource.filter import Filter

    def _make(text: str):
        return Filter(parse_filter_config(text, source="test.yml"))

    return _make


@pytest.fixture
def make_descriptor():
    """고정 응답 페이지를 반환하는 디스크립터 생성"""
    from core.resource.selector import select_generic
    from core.resource.types import ResourceKindDescriptor

    def _make(
        kind: str,
        path: List[str],
        deletion_key: str,
        pages: Optional[List[Dict[str, Any]]] = None,
        list_call=None,
        selector=select_generic,
        **kwargs: Any,
    ) -> ResourceKindDescriptor:
        if list_call is None:
            list_call = MagicMock(return_value=list(pages or []))
        return ResourceKindDescriptor(
            kind=kind,
            response_path=tuple(path),
            deletion_key=deletion_key,
            list_call=list_call,
            selector=selector,
            **kwargs,
        )

    return _make


# =============================================================================
# 유틸리티 함수
# =============================================================================


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


# =============================================================================
# moto 통합 (선택적)
# =============================================================================

try:
    import moto

    @pytest.fixture
    def aws_credentials():
        """moto 사용 시 AWS 자격 증명 설정"""
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
        os.environ["AWS_DEFAULT_REGION"] = "ap-northeast-2"

    @pytest.fixture
    def moto_session(aws_credentials):
        """moto mock_aws 안에서 사용하는 boto3 Session"""
        with moto.mock_aws():
            import boto3

            yield boto3.Session(region_name="ap-northeast-2")

    @pytest.fixture
    def moto_ec2(moto_session):
        """moto를 사용한 EC2 모킹 (VPC + 서브넷)"""
        ec2 = moto_session.client("ec2")

        vpc = ec2.create_vpc(
            CidrBlock="10.0.0.0/16",
            TagSpecifications=[{"ResourceType": "vpc", "Tags": [{"Key": "Owner", "Value": "team-a"}]}],
        )
        vpc_id = vpc["Vpc"]["VpcId"]

        subnet = ec2.create_subnet(VpcId=vpc_id, CidrBlock="10.0.1.0/24")
        subnet_id = subnet["Subnet"]["SubnetId"]

        yield ec2, vpc_id, subnet_id

except ImportError:
    # moto가 설치되지 않은 경우 더미 픽스처
    @pytest.fixture
    def moto_session():
        pytest.skip("moto not installed")

    @pytest.fixture
    def moto_ec2():
        pytest.skip("moto not installed")

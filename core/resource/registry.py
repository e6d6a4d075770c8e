"""
core/resource/registry.py - 리소스 디스크립터 레지스트리

지원하는 리소스 유형별로 "어떤 API로 목록을 조회하고, 응답의 어디에 항목이 있는지"를
정의하는 단일 출처입니다. 리소스 유형 식별자는 Terraform AWS provider의
리소스 이름(aws_instance, aws_vpc 등)을 따릅니다.

레지스트리는 실행마다 boto3 세션에 바인딩되어 새로 생성되며, 생성 후에는 읽기 전용입니다.

Usage:
    import boto3
    from core.resource.registry import AWSClients, ResourceRegistry

    clients = AWSClients(boto3.Session(profile_name="dev"), region="ap-northeast-2")
    registry = ResourceRegistry.from_clients(clients)

    for descriptor in registry.list_all_kinds():
        print(descriptor.kind)

    vpc = registry.lookup("aws_vpc")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from core.exceptions import PathResolutionError, UnknownKindError
from core.parallel import get_client

from .selector import (
    make_kms_key_selector,
    make_secondary_tags_selector,
    select_generic,
    select_kms_alias,
    select_route53_zone,
)
from .types import ListCall, ResourceKindDescriptor

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

# EC2 인스턴스 목록 조회 시 포함할 상태 (종료된 인스턴스 제외)
INSTANCE_STATES = ["pending", "running", "stopping", "stopped"]


class AWSClients:
    """리소스 유형별 목록 조회에 사용하는 boto3 client 모음

    client는 처음 사용할 때 생성되며 (retry/타임아웃 설정 포함),
    boto3 Session의 client 생성은 스레드 세이프하지 않으므로 잠금으로 보호합니다.

    Attributes:
        session: boto3 Session
        region: 대상 리전
    """

    def __init__(self, session: boto3.Session, region: str):
        self.session = session
        self.region = region
        self._clients: dict[str, Any] = {}
        self._lock = threading.Lock()

    def client(self, service: str) -> Any:
        """서비스 client 반환 (없으면 생성)"""
        with self._lock:
            if service not in self._clients:
                logger.debug(f"boto3 client 생성: {service} ({self.region})")
                self._clients[service] = get_client(self.session, service, region_name=self.region)
            return self._clients[service]


def paginated(clients: AWSClients, service: str, operation: str) -> ListCall:
    """목록 조회 호출 생성

    paginator를 지원하는 API면 모든 페이지를, 아니면 단일 응답을 반환합니다.

    Args:
        clients: AWSClients
        service: 서비스 이름 (예: "ec2")
        operation: API 작업 이름 (예: "describe_instances")
    """

    def list_pages(**kwargs: Any) -> Iterator[Mapping[str, Any]]:
        client = clients.client(service)
        if client.can_paginate(operation):
            yield from client.get_paginator(operation).paginate(**kwargs)
        else:
            yield getattr(client, operation)(**kwargs)

    return list_pages


def _tags_from(
    clients: AWSClients, kind: str, service: str, operation: str, param: str, field: str, key: str
) -> Callable:
    """항목별 태그 조회 함수 생성 (예: iam.list_user_tags(UserName=item["UserName"])["Tags"])"""

    def fetch(item: Mapping[str, Any]) -> Any:
        value = item.get(field) if isinstance(item, Mapping) else None
        if value is None or value == "":
            raise PathResolutionError(kind, (field,), field, "태그 조회에 필요한 필드가 없습니다")
        response = getattr(clients.client(service), operation)(**{param: value})
        return response.get(key)

    return fetch


def build_descriptors(clients: AWSClients) -> list[ResourceKindDescriptor]:
    """지원하는 모든 리소스 유형의 디스크립터 목록 (고정 순서)"""

    def d(
        kind: str,
        path: Sequence[str],
        deletion_key: str,
        service: str,
        operation: str,
        list_input: Mapping[str, Any] | None = None,
        selector: Callable = select_generic,
        tags_field: str | None = "Tags",
        created_field: str | None = None,
    ) -> ResourceKindDescriptor:
        return ResourceKindDescriptor(
            kind=kind,
            response_path=tuple(path),
            deletion_key=deletion_key,
            list_call=paginated(clients, service, operation),
            selector=selector,
            list_input=dict(list_input or {}),
            tags_field=tags_field,
            created_field=created_field,
        )

    return [
        # Auto Scaling
        d(
            "aws_autoscaling_group",
            ["AutoScalingGroups"],
            "AutoScalingGroupName",
            "autoscaling",
            "describe_auto_scaling_groups",
            created_field="CreatedTime",
        ),
        d(
            "aws_launch_configuration",
            ["LaunchConfigurations"],
            "LaunchConfigurationName",
            "autoscaling",
            "describe_launch_configurations",
            tags_field=None,
            created_field="CreatedTime",
        ),
        # EC2
        d(
            "aws_instance",
            ["Reservations", "Instances"],
            "InstanceId",
            "ec2",
            "describe_instances",
            {"Filters": [{"Name": "instance-state-name", "Values": INSTANCE_STATES}]},
            created_field="LaunchTime",
        ),
        d("aws_key_pair", ["KeyPairs"], "KeyName", "ec2", "describe_key_pairs", created_field="CreateTime"),
        d(
            "aws_elb",
            ["LoadBalancerDescriptions"],
            "LoadBalancerName",
            "elb",
            "describe_load_balancers",
            tags_field=None,
            created_field="CreatedTime",
        ),
        d(
            "aws_vpc_endpoint",
            ["VpcEndpoints"],
            "VpcEndpointId",
            "ec2",
            "describe_vpc_endpoints",
            created_field="CreationTimestamp",
        ),
        d(
            "aws_nat_gateway",
            ["NatGateways"],
            "NatGatewayId",
            "ec2",
            "describe_nat_gateways",
            {"Filter": [{"Name": "state", "Values": ["available"]}]},
            created_field="CreateTime",
        ),
        d(
            "aws_cloudformation_stack",
            ["Stacks"],
            "StackId",
            "cloudformation",
            "describe_stacks",
            created_field="CreationTime",
        ),
        d(
            "aws_route53_zone",
            ["HostedZones"],
            "Id",
            "route53",
            "list_hosted_zones",
            selector=select_route53_zone,
            tags_field=None,
        ),
        d(
            "aws_efs_file_system",
            ["FileSystems"],
            "FileSystemId",
            "efs",
            "describe_file_systems",
            created_field="CreationTime",
        ),
        d(
            "aws_network_interface",
            ["NetworkInterfaces"],
            "NetworkInterfaceId",
            "ec2",
            "describe_network_interfaces",
            tags_field="TagSet",
        ),
        d("aws_eip", ["Addresses"], "AllocationId", "ec2", "describe_addresses"),
        d("aws_internet_gateway", ["InternetGateways"], "InternetGatewayId", "ec2", "describe_internet_gateways"),
        d("aws_subnet", ["Subnets"], "SubnetId", "ec2", "describe_subnets"),
        d("aws_route_table", ["RouteTables"], "RouteTableId", "ec2", "describe_route_tables"),
        d("aws_security_group", ["SecurityGroups"], "GroupId", "ec2", "describe_security_groups"),
        d("aws_network_acl", ["NetworkAcls"], "NetworkAclId", "ec2", "describe_network_acls"),
        d("aws_vpc", ["Vpcs"], "VpcId", "ec2", "describe_vpcs"),
        # IAM (글로벌) - 목록 조회 응답에 태그가 없어 항목별로 조회
        d(
            "aws_iam_policy",
            ["Policies"],
            "Arn",
            "iam",
            "list_policies",
            {"Scope": "Local"},
            selector=make_secondary_tags_selector(
                _tags_from(clients, "aws_iam_policy", "iam", "list_policy_tags", "PolicyArn", "Arn", "Tags")
            ),
            created_field="CreateDate",
        ),
        d("aws_iam_group", ["Groups"], "GroupName", "iam", "list_groups", tags_field=None, created_field="CreateDate"),
        d(
            "aws_iam_user",
            ["Users"],
            "UserName",
            "iam",
            "list_users",
            selector=make_secondary_tags_selector(
                _tags_from(clients, "aws_iam_user", "iam", "list_user_tags", "UserName", "UserName", "Tags")
            ),
            created_field="CreateDate",
        ),
        d(
            "aws_iam_role",
            ["Roles"],
            "RoleName",
            "iam",
            "list_roles",
            selector=make_secondary_tags_selector(
                _tags_from(clients, "aws_iam_role", "iam", "list_role_tags", "RoleName", "RoleName", "Tags")
            ),
            created_field="CreateDate",
        ),
        d(
            "aws_iam_instance_profile",
            ["InstanceProfiles"],
            "InstanceProfileName",
            "iam",
            "list_instance_profiles",
            created_field="CreateDate",
        ),
        # KMS
        d(
            "aws_kms_alias",
            ["Aliases"],
            "AliasName",
            "kms",
            "list_aliases",
            selector=select_kms_alias,
            tags_field=None,
            created_field="CreationDate",
        ),
        d(
            "aws_kms_key",
            ["Keys"],
            "KeyId",
            "kms",
            "list_keys",
            selector=make_kms_key_selector(
                lambda **kw: clients.client("kms").describe_key(**kw),
                lambda **kw: clients.client("kms").list_resource_tags(**kw),
            ),
            tags_field=None,
        ),
        # S3 (글로벌) - 버킷 태그는 GetBucketTagging으로 조회
        d(
            "aws_s3_bucket",
            ["Buckets"],
            "Name",
            "s3",
            "list_buckets",
            selector=make_secondary_tags_selector(
                _tags_from(clients, "aws_s3_bucket", "s3", "get_bucket_tagging", "Bucket", "Name", "TagSet")
            ),
            created_field="CreationDate",
        ),
        # EBS / AMI - 계정 소유 리소스만
        d(
            "aws_ebs_snapshot",
            ["Snapshots"],
            "SnapshotId",
            "ec2",
            "describe_snapshots",
            {"OwnerIds": ["self"]},
            created_field="StartTime",
        ),
        d("aws_ebs_volume", ["Volumes"], "VolumeId", "ec2", "describe_volumes", created_field="CreateTime"),
        d(
            "aws_ami",
            ["Images"],
            "ImageId",
            "ec2",
            "describe_images",
            {"Owners": ["self"]},
            created_field="CreationDate",
        ),
    ]


class ResourceRegistry:
    """리소스 유형 식별자 -> 디스크립터 (읽기 전용)

    Example:
        registry = ResourceRegistry.from_clients(clients)
        descriptor = registry.lookup("aws_instance")
    """

    def __init__(self, descriptors: Iterable[ResourceKindDescriptor]):
        self._descriptors: list[ResourceKindDescriptor] = list(descriptors)
        self._by_kind: dict[str, ResourceKindDescriptor] = {}
        for descriptor in self._descriptors:
            if descriptor.kind in self._by_kind:
                raise ValueError(f"중복된 리소스 유형: {descriptor.kind}")
            self._by_kind[descriptor.kind] = descriptor

    @classmethod
    def from_clients(cls, clients: AWSClients) -> ResourceRegistry:
        """boto3 client 바인딩으로 레지스트리 생성"""
        return cls(build_descriptors(clients))

    def list_all_kinds(self) -> list[ResourceKindDescriptor]:
        """모든 디스크립터 (고정 순서)"""
        return list(self._descriptors)

    def kinds(self) -> list[str]:
        """모든 리소스 유형 식별자 (고정 순서)"""
        return [descriptor.kind for descriptor in self._descriptors]

    def lookup(self, kind: str) -> ResourceKindDescriptor:
        """리소스 유형으로 디스크립터 조회

        Raises:
            UnknownKindError: 등록되지 않은 유형
        """
        try:
            return self._by_kind[kind]
        except KeyError:
            raise UnknownKindError(kind) from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._by_kind

    def __len__(self) -> int:
        return len(self._descriptors)

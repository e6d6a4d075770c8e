"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    awsweep --version                       # 버전 표시
    awsweep kinds [--json]                  # 지원하는 리소스 유형 목록
    awsweep scan CONFIG [options]           # 필터 설정으로 삭제 대상 리소스 스캔

    예시:
    awsweep scan filter.yml -p dev -r ap-northeast-2
    awsweep scan filter.yml -k aws_vpc -k aws_subnet -f json -o result.json

종료 코드 (scan):
    0: 모든 리소스 유형 스캔 성공
    1: 필터 설정 읽기/파싱/검증 실패 (스캔 시작 전)
    2: 일부 리소스 유형 목록 조회 실패 (나머지 결과는 출력됨)

Usage:
    $ awsweep scan filter.yml

    # 모듈로 실행
    $ python -m cli.app scan filter.yml
"""

import logging

import boto3
import click
from botocore.exceptions import ProfileNotFound

from cli.output import (
    configure_logging,
    console,
    kinds_as_json,
    print_exception,
    print_success,
    print_warning,
    render_console,
    write_json,
)
from core.config import get_default_region, get_version, settings
from core.exceptions import ConfigError, RegistryError
from core.parallel import ParallelConfig
from core.resource import AWSClients, Filter, ResourceRegistry, Scanner, load_filter_config

# WARNING 레벨로 설정하여 INFO 로그가 스캔 결과 출력에 섞이지 않도록 함
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

VERSION = get_version()

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_PARTIAL_FAILURE = 2


@click.group()
@click.version_option(VERSION, prog_name="awsweep")
def cli() -> None:
    """awsweep - 필터 설정 기반 AWS 리소스 스캐너"""


@cli.command("kinds")
@click.option("--json", "as_json", is_flag=True, help="JSON 형식으로 출력")
def kinds_command(as_json: bool) -> None:
    """지원하는 리소스 유형 목록

    \b
    Examples:
        awsweep kinds           # 테이블 출력
        awsweep kinds --json    # JSON 출력
    """
    from rich.table import Table

    region = get_default_region()
    registry = ResourceRegistry.from_clients(AWSClients(boto3.Session(region_name=region), region))
    kinds = registry.kinds()

    if as_json:
        click.echo(kinds_as_json(kinds))
        return

    table = Table(title="지원하는 리소스 유형", show_header=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Kind", style="cyan")
    for index, kind in enumerate(kinds, 1):
        table.add_row(str(index), kind)
    console.print(table)


@cli.command("scan")
@click.argument("config_path", metavar="CONFIG", type=click.Path(dir_okay=False))
@click.option("-p", "--profile", "profile", default=None, help="AWS 프로파일")
@click.option("-r", "--region", "region", default=None, help="리전 (기본값: 설정된 기본 리전)")
@click.option(
    "-w",
    "--workers",
    "workers",
    type=click.IntRange(1, 100),
    default=settings.MAX_WORKERS,
    show_default=True,
    help="동시에 스캔할 리소스 유형 수",
)
@click.option("-k", "--kind", "kinds", multiple=True, help="스캔할 리소스 유형 (다중 가능, 기본값: 설정 전체)")
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
)
@click.option("-o", "--output", default=None, help="JSON 결과 저장 경로")
@click.option("-v", "--verbose", is_flag=True, help="진행 로그 출력")
def scan_command(
    config_path: str,
    profile: str | None,
    region: str | None,
    workers: int,
    kinds: tuple[str, ...],
    output_format: str,
    output: str | None,
    verbose: bool,
) -> None:
    """필터 설정에 매칭되는 리소스 스캔

    \b
    Examples:
        awsweep scan filter.yml
        awsweep scan filter.yml -p dev -r ap-northeast-2
        awsweep scan filter.yml -k aws_vpc -f json -o result.json
    """
    configure_logging(verbose or settings.VERBOSE)
    region = region or get_default_region()

    try:
        filter_config = load_filter_config(config_path)
    except ConfigError as e:
        print_exception(e)
        raise SystemExit(EXIT_CONFIG_ERROR) from None

    try:
        session = boto3.Session(profile_name=profile, region_name=region)
    except ProfileNotFound as e:
        print_exception(e, prefix="프로파일을 찾을 수 없습니다: ")
        raise SystemExit(EXIT_CONFIG_ERROR) from None

    registry = ResourceRegistry.from_clients(AWSClients(session, region))
    scanner = Scanner(registry, Filter(filter_config), ParallelConfig(max_workers=workers), region=region)

    try:
        result = scanner.scan(list(kinds) or None)
    except (ConfigError, RegistryError) as e:
        print_exception(e)
        raise SystemExit(EXIT_CONFIG_ERROR) from None

    if output_format == "json":
        path = write_json(result, output)
        if path is not None:
            print_success(f"결과 저장: {path}")
    else:
        render_console(result)
        if output:
            print_success(f"결과 저장: {write_json(result, output)}")

    if result.has_errors:
        print_warning(f"{len(result.errors)}개 리소스 유형 스캔 실패: {', '.join(result.failed_kinds)}")
        raise SystemExit(EXIT_PARTIAL_FAILURE)


if __name__ == "__main__":
    cli()

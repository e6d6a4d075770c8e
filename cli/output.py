"""
cli/output.py - 스캔 결과 출력

Rich 콘솔 테이블 또는 JSON으로 ScanResult를 출력합니다.
"""

from __future__ import annotations

import json
import logging
import platform
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from core.exceptions import format_error_for_user

if TYPE_CHECKING:
    from core.parallel import TaskError
    from core.resource import ScanResult

# botocore 노이즈 로그 제한
logging.getLogger("botocore.httpchecksum").setLevel(logging.WARNING)
logging.getLogger("botocore.credentials").setLevel(logging.WARNING)
logging.getLogger("botocore.loaders").setLevel(logging.WARNING)
logging.getLogger("botocore.session").setLevel(logging.WARNING)


def get_console(stderr: bool = False) -> Console:
    """Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        stderr=stderr,
        color_system="auto",
        highlight=True,
        soft_wrap=True,
        markup=True,
        emoji=not is_windows,
    )


# 전역 콘솔 인스턴스 (결과는 stdout, 진행/에러 메시지는 stderr)
console = get_console()
err_console = get_console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """verbose 모드면 루트 logger를 RichHandler(stderr)로 교체

    Args:
        verbose: True면 INFO 로그 출력
    """
    if not verbose:
        return

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = RichHandler(console=err_console, rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
    root.setLevel(logging.INFO)

    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


# =============================================================================
# 표준 출력 스타일
# =============================================================================

SYMBOL_SUCCESS = "✓"
SYMBOL_ERROR = "✗"
SYMBOL_WARNING = "!"


def print_success(message: str) -> None:
    """성공 메시지 출력 (초록색 체크마크)"""
    err_console.print(f"[green]{SYMBOL_SUCCESS} {escape(message)}[/green]")


def print_error(message: str) -> None:
    """에러 메시지 출력 (빨간색 X)"""
    err_console.print(f"[red]{SYMBOL_ERROR} {escape(message)}[/red]", highlight=False)


def print_warning(message: str) -> None:
    """경고 메시지 출력 (노란색 경고)"""
    err_console.print(f"[yellow]{SYMBOL_WARNING} {escape(message)}[/yellow]")


def print_exception(error: Exception, prefix: str = "") -> None:
    """예외를 사용자용 메시지로 변환해 에러 출력"""
    print_error(f"{prefix}{format_error_for_user(error)}")


# =============================================================================
# 결과 출력
# =============================================================================


def _format_tags(tags: dict[str, str]) -> str:
    return ", ".join(f"{k}={v}" for k, v in sorted(tags.items()))


def _error_message(error: TaskError) -> str:
    if error.original_exception is not None:
        return format_error_for_user(error.original_exception)
    return error.message


def render_console(result: ScanResult) -> None:
    """리소스 유형별 테이블 + 실패 요약 출력"""
    for kind, resources in result.matches.items():
        if not resources:
            continue

        table = Table(title=escape(f"{kind} ({len(resources)})"), show_header=True, title_justify="left")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Tags", style="white")
        table.add_column("Created", style="dim")

        for resource in resources:
            created = resource.created.isoformat() if resource.created else "-"
            table.add_row(escape(resource.id), escape(_format_tags(resource.tags)) or "-", created)

        console.print(table)
        console.print()

    if result.total_count:
        print_success(f"매칭된 리소스 {result.total_count}개 ({len(result.matches)}개 유형 스캔)")
    else:
        print_warning(f"매칭된 리소스가 없습니다 ({len(result.matches)}개 유형 스캔)")

    if result.has_errors:
        table = Table(title="실패한 리소스 유형", show_header=True, title_justify="left")
        table.add_column("Kind", style="red")
        table.add_column("Category", style="yellow")
        table.add_column("Code")
        table.add_column("Message")
        for error in result.errors:
            table.add_row(
                escape(error.identifier),
                error.category.value,
                escape(error.error_code),
                escape(_error_message(error)),
            )
        err_console.print(table)


def to_json(result: ScanResult) -> str:
    """ScanResult -> JSON 문자열"""
    return json.dumps(result.to_dict(), ensure_ascii=False, indent=2, default=str)


def write_json(result: ScanResult, output: str | None = None) -> Path | None:
    """JSON 출력 (output이 있으면 파일로 저장하고 경로 반환)"""
    payload = to_json(result)
    if output is None:
        click.echo(payload)
        return None

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload + "\n", encoding="utf-8")
    return path


def kinds_as_json(kinds: list[str]) -> str:
    data: list[dict[str, Any]] = [{"kind": kind} for kind in kinds]
    return json.dumps(data, ensure_ascii=False, indent=2)

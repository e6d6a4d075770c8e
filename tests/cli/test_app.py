# tests/cli/test_app.py
"""
Tests for cli/app.py - awsweep CLI entry point

Tests cover:
- Version display
- kinds command (table / JSON)
- scan command exit codes (0 / 1 / 2)
- JSON output to stdout and file
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from conftest import create_mock_client_error

from cli.app import EXIT_CONFIG_ERROR, EXIT_OK, EXIT_PARTIAL_FAILURE, cli
from core.resource.registry import ResourceRegistry


@pytest.fixture
def runner():
    """Click CliRunner fixture"""
    return CliRunner()


@pytest.fixture
def filter_file(tmp_path):
    """Write a filter document and return its path"""

    def _write(text: str) -> str:
        path = tmp_path / "filter.yml"
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def fake_registry(make_descriptor):
    """Registry whose list calls return canned pages"""
    return ResourceRegistry(
        [
            make_descriptor(
                "aws_vpc",
                ["Vpcs"],
                "VpcId",
                pages=[{"Vpcs": [{"VpcId": "vpc-keep", "Tags": [{"Key": "Owner", "Value": "team-a"}]}, {"VpcId": "vpc-2"}]}],
            ),
            make_descriptor("aws_subnet", ["Subnets"], "SubnetId", pages=[{"Subnets": [{"SubnetId": "subnet-1"}]}]),
        ]
    )


class TestVersion:
    """--version"""

    def test_version_option(self, runner):
        """Version string from version.txt"""
        from core.config import get_version

        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert get_version() in result.output
        assert "awsweep" in result.output


class TestKindsCommand:
    """awsweep kinds"""

    def test_json(self, runner):
        """JSON list of all supported kinds in registry order"""
        result = runner.invoke(cli, ["kinds", "--json"])

        assert result.exit_code == 0
        kinds = [item["kind"] for item in json.loads(result.output)]
        assert len(kinds) == 29
        assert kinds[0] == "aws_autoscaling_group"
        assert kinds[-1] == "aws_ami"

    def test_table(self, runner):
        """Table output"""
        result = runner.invoke(cli, ["kinds"])

        assert result.exit_code == 0
        assert "aws_security_group" in result.output


class TestScanConfigErrors:
    """scan: configuration failures exit with 1 before listing"""

    def test_missing_file(self, runner, tmp_path):
        """Unreadable config"""
        result = runner.invoke(cli, ["scan", str(tmp_path / "missing.yml")])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "missing.yml" in result.output

    def test_relative_source_kept(self, runner):
        """Relative config source survives in the message"""
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["scan", "filter.yml"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "[filter.yml]" in result.output

    def test_absolute_source_kept(self, runner, tmp_path):
        """Absolute config source is not parsed as markup"""
        path = tmp_path / "filter.yml"

        result = runner.invoke(cli, ["scan", str(path)])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert isinstance(result.exception, SystemExit)
        assert f"[{path}]" in result.output

    def test_parse_error(self, runner, filter_file):
        """Malformed YAML"""
        result = runner.invoke(cli, ["scan", filter_file("aws_vpc: [oops")])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_bad_regex(self, runner, filter_file):
        """Invalid pattern fails at load time"""
        result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\n  Ids: ['(']\n")])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_unsupported_kind(self, runner, filter_file):
        """Unsupported kind is rejected before any API call"""
        with patch("core.resource.registry.get_client") as mock_get_client:
            result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\naws_lambda_function:\n"), "-r", "us-east-1"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "aws_lambda_function" in result.output
        mock_get_client.assert_not_called()

    def test_unknown_kind_option(self, runner, filter_file, fake_registry):
        """-k with an unregistered kind"""
        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\n"), "-k", "aws_nope"])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_profile_not_found(self, runner, filter_file, tmp_path, monkeypatch):
        """Unknown AWS profile"""
        monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
        monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))

        result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\n"), "-p", "no-such-profile"])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_invalid_workers(self, runner, filter_file):
        """Worker count must be within 1..100"""
        result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\n"), "-w", "0"])

        assert result.exit_code == 2
        assert "Invalid value" in result.output


class TestScanSuccess:
    """scan: successful runs"""

    def test_json_stdout(self, runner, filter_file, fake_registry):
        """JSON result on stdout"""
        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(
                cli,
                ["scan", filter_file("aws_vpc:\n  Tags:\n    Owner: team-a\n"), "-f", "json", "-r", "eu-west-1"],
            )

        assert result.exit_code == EXIT_OK
        data = json.loads(result.output)
        assert data["region"] == "eu-west-1"
        assert data["total"] == 1
        assert data["matches"]["aws_vpc"][0]["id"] == "vpc-keep"
        assert data["errors"] == []

    def test_console_output(self, runner, filter_file, fake_registry):
        """Console table per kind"""
        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\naws_subnet:\n")])

        assert result.exit_code == EXIT_OK
        assert "vpc-keep" in result.output
        assert "subnet-1" in result.output

    def test_output_file(self, runner, filter_file, fake_registry, tmp_path):
        """-o writes JSON to a file"""
        output = tmp_path / "out" / "result.json"

        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(cli, ["scan", filter_file("aws_subnet:\n"), "-o", str(output)])

        assert result.exit_code == EXIT_OK
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [r["id"] for r in data["matches"]["aws_subnet"]] == ["subnet-1"]

    def test_kind_option_limits_scan(self, runner, filter_file, fake_registry, tmp_path):
        """-k scans only the named kinds"""
        output = tmp_path / "result.json"

        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(
                cli, ["scan", filter_file("aws_vpc:\naws_subnet:\n"), "-k", "aws_subnet", "-f", "json", "-o", str(output)]
            )

        assert result.exit_code == EXIT_OK
        assert list(json.loads(output.read_text(encoding="utf-8"))["matches"]) == ["aws_subnet"]
        fake_registry.lookup("aws_vpc").list_call.assert_not_called()


class TestScanPartialFailure:
    """scan: per-kind failures exit with 2"""

    def test_failed_kind(self, runner, filter_file, fake_registry, tmp_path):
        """Other kinds still reported"""
        fake_registry.lookup("aws_vpc").list_call.side_effect = create_mock_client_error("AccessDenied")
        output = tmp_path / "result.json"

        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(
                cli, ["scan", filter_file("aws_vpc:\naws_subnet:\n"), "-f", "json", "-o", str(output)]
            )

        assert result.exit_code == EXIT_PARTIAL_FAILURE
        data = json.loads(output.read_text(encoding="utf-8"))
        assert list(data["matches"]) == ["aws_subnet"]
        assert data["errors"][0]["identifier"] == "aws_vpc"
        assert data["errors"][0]["category"] == "access_denied"
        assert "aws_vpc" in result.output


class TestScanMarkup:
    """scan: brackets in resource data are printed literally"""

    def test_bracket_values(self, runner, filter_file, make_descriptor):
        """Brackets in ids and tag values"""
        registry = ResourceRegistry(
            [
                make_descriptor(
                    "aws_vpc",
                    ["Vpcs"],
                    "VpcId",
                    pages=[{"Vpcs": [{"VpcId": "[/vpc-odd]", "Tags": [{"Key": "Name", "Value": "[bold]x"}]}]}],
                )
            ]
        )

        with patch.object(ResourceRegistry, "from_clients", return_value=registry):
            result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\n")])

        assert result.exit_code == EXIT_OK
        assert "[/vpc-odd]" in result.output
        assert "Name=[bold]x" in result.output

    def test_bracket_error_message(self, runner, filter_file, fake_registry):
        """Brackets in failure messages"""
        fake_registry.lookup("aws_vpc").list_call.side_effect = create_mock_client_error(
            "Boom", "[/oops]"
        )

        with patch.object(ResourceRegistry, "from_clients", return_value=fake_registry):
            result = runner.invoke(cli, ["scan", filter_file("aws_vpc:\naws_subnet:\n")])

        assert result.exit_code == EXIT_PARTIAL_FAILURE
        assert "[/oops]" in result.output

"""CLI tests using click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from cloudaudit.cli import cli

from .helpers import ACCOUNT_ID, REGION, ok


@pytest.fixture
def runner():
    return CliRunner()


def write_cache(tmp_path, document):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps(document))
    return str(path)


def test_list_checks(runner):
    result = runner.invoke(cli, ["list-checks"])
    assert result.exit_code == 0
    assert "cloudtrail_bucket_access_logging" in result.output
    assert "voice_id_desired_encryption_level" in result.output


def test_quiet_scan_prints_json(runner, tmp_path):
    cache_file = write_cache(tmp_path, {
        "sts": {"getCallerIdentity": {REGION: ok(ACCOUNT_ID)}},
        "s3": {"listBuckets": {REGION: ok([])}},
    })

    result = runner.invoke(cli, ["scan", cache_file, "-c", "s3_bucket_has_tags",
                                 "-r", REGION, "--quiet"])

    assert result.exit_code == 0, result.output
    document = json.loads(result.output)
    assert document["metadata"]["account_id"] == ACCOUNT_ID
    assert document["findings"][0]["message"] == "No S3 buckets to check"


def test_failing_findings_set_exit_code(runner, tmp_path):
    cache_file = write_cache(tmp_path, {"ec2": {"describeSecurityGroups": {REGION: ok([
        {"GroupName": "launch-wizard-1", "GroupId": "sg-1", "OwnerId": ACCOUNT_ID}])}}})
    output = tmp_path / "out" / "report.json"

    result = runner.invoke(cli, ["scan", cache_file, "-c", "ec2_launch_wizard_security_groups",
                                 "-r", REGION, "-o", str(output)])

    assert result.exit_code == 1
    report = json.loads(output.read_text())
    assert report["summary"]["by_status"] == {"FAIL": 1}


def test_unknown_check_exits_with_error(runner, tmp_path):
    cache_file = write_cache(tmp_path, {})
    result = runner.invoke(cli, ["scan", cache_file, "-c", "nope", "--quiet"])

    assert result.exit_code == 2
    assert json.loads(result.output) == {"error": True, "message": "Unknown check: nope"}


def test_invalid_cache_exits_with_error(runner, tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("[]")

    result = runner.invoke(cli, ["scan", str(path), "--quiet"])
    assert result.exit_code == 2


def test_bad_setting_format(runner, tmp_path):
    cache_file = write_cache(tmp_path, {})
    result = runner.invoke(cli, ["scan", cache_file, "-s", "no-equals-sign"])
    assert result.exit_code == 2
    assert "key=value" in result.output

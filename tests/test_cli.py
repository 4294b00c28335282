"""Tests for the datawise command line: argument handling, exit codes, and a full testing run."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError, ProfileNotFound
import pytest

from datawise.cli import main


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep exported region and key files inside the test."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "unset")
    monkeypatch.setenv("AWS_PROFILE", "ops")
    monkeypatch.setenv("DATAWISE_KEY_DIR", str(tmp_path))
    monkeypatch.delenv("DATAWISE_CONFIG_PATH", raising=False)


def _session(ec2: MagicMock, s3: MagicMock) -> MagicMock:
    session = MagicMock()
    clients = {"ec2": ec2, "s3": s3, "sts": MagicMock()}
    session.client.side_effect = lambda name, **kwargs: clients[name]
    return session


@pytest.mark.parametrize("argv", [[], ["testing", "extra"]])
@patch("datawise.cli.boto3.session.Session")
def test_wrong_argument_count(mock_session: MagicMock, argv: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    """Wrong arity exits 1 with usage, before any provider call."""
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    assert exc_info.value.code == 1
    assert "Usage: datawise <environment>" in capsys.readouterr().out
    mock_session.assert_not_called()


@patch("datawise.cli.boto3.session.Session")
def test_invalid_environment(mock_session: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
    """An unknown environment exits 2, before any provider call."""
    with pytest.raises(SystemExit) as exc_info:
        main(["staging"])
    assert exc_info.value.code == 2
    assert "Invalid environment specified" in capsys.readouterr().err
    mock_session.assert_not_called()


@patch("datawise.cli.boto3.session.Session")
def test_invalid_config_exits_1(
    mock_session: MagicMock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A broken environment table exits 1."""
    bad = tmp_path / "environments.yaml"
    bad.write_text("apiVersion: datawise.io/v1\n", encoding="utf-8")
    monkeypatch.setenv("DATAWISE_CONFIG_PATH", str(bad))
    with pytest.raises(SystemExit) as exc_info:
        main(["local"])
    assert exc_info.value.code == 1
    mock_session.assert_not_called()


@patch("datawise.cli.boto3.session.Session")
def test_end_to_end_testing(
    mock_session: MagicMock,
    ec2: MagicMock,
    s3: MagicMock,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """testing: key pair created, 2 tagged instances, 5 buckets with 3 folders each, exit 0."""
    ec2.describe_key_pairs.side_effect = ClientError(
        {"Error": {"Code": "InvalidKeyPair.NotFound", "Message": "missing"}}, "DescribeKeyPairs"
    )
    ec2.create_key_pair.return_value = {"KeyMaterial": "PRIVATE"}
    mock_session.return_value = _session(ec2, s3)

    with pytest.raises(SystemExit) as exc_info:
        main(["testing"])

    assert exc_info.value.code == 0
    mock_session.assert_called_once_with(region_name="us-west-2")
    assert os.environ["AWS_DEFAULT_REGION"] == "us-west-2"
    assert (tmp_path / "datawise-key-testing.pem").read_text(encoding="utf-8") == "PRIVATE"

    assert ec2.run_instances.call_count == 2
    for c in ec2.run_instances.call_args_list:
        tags = {t["Key"]: t["Value"] for t in c[1]["TagSpecifications"][0]["Tags"]}
        assert tags["Environment"] == "testing"

    assert [c[1]["Bucket"] for c in s3.create_bucket.call_args_list] == [
        "datawise-marketing-testing-data-bucket",
        "datawise-sales-testing-data-bucket",
        "datawise-hr-testing-data-bucket",
        "datawise-operations-testing-data-bucket",
        "datawise-media-testing-data-bucket",
    ]
    assert s3.put_object.call_count == 15

    out = capsys.readouterr().out
    assert "DataWise Solutions - AWS Environment Setup" in out
    assert "Environment setup completed for testing" in out


@patch("datawise.cli.boto3.session.Session")
def test_provisioning_failure_exits_1(
    mock_session: MagicMock, ec2: MagicMock, s3: MagicMock, capsys: pytest.CaptureFixture[str]
) -> None:
    """A fatal step exits 1 and skips the completion banner."""
    ec2.run_instances.side_effect = ClientError(
        {"Error": {"Code": "InsufficientInstanceCapacity", "Message": "none left"}}, "RunInstances"
    )
    mock_session.return_value = _session(ec2, s3)

    with pytest.raises(SystemExit) as exc_info:
        main(["production"])

    assert exc_info.value.code == 1
    s3.create_bucket.assert_not_called()
    captured = capsys.readouterr()
    assert "Failed to create EC2 instance: datawise-production-instance-1" in captured.err
    assert "Environment setup completed" not in captured.out


@patch("datawise.cli.boto3.session.Session")
def test_unknown_profile_exits_1(mock_session: MagicMock) -> None:
    """An AWS_PROFILE that is not configured exits 1."""
    mock_session.side_effect = ProfileNotFound(profile="ops")
    with pytest.raises(SystemExit) as exc_info:
        main(["local"])
    assert exc_info.value.code == 1

"""Tests for CLI."""

import json

import pytest
from click.testing import CliRunner

from zerotrust_gate.cli import cli, sample_engine

CONTEXT = {
    "mfa_factor": "totp",
    "device_id": "dev-001",
    "source_segment": "External",
    "target_segment": "Internal",
    "time": "09:30",
    "location": "us-east",
    "device": "dev-001",
    "classification": "Confidential",
    "encrypted": True,
}

POLICY_YAML = """
policies:
  - policy_id: custom-geo
    name: Geo Fencing
    domain: network
    risk_level: high
    rules:
      allowed_regions: [us-east]
"""


@pytest.fixture
def runner():
    return CliRunner()


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "ZeroTrust-Gate" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_evaluate_allow(self, runner):
        result = runner.invoke(cli, [
            "evaluate", "--subject", "alice", "--resource", "crm",
            "--context", json.dumps(CONTEXT),
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["outcome"] == "allow"

    def test_evaluate_deny_exits_nonzero(self, runner):
        result = runner.invoke(cli, [
            "evaluate", "--subject", "eve", "--resource", "crm",
            "--context", json.dumps(CONTEXT),
        ])
        assert result.exit_code == 1
        assert json.loads(result.output)["reason_code"] == "UnknownSubject"

    def test_evaluate_without_sample_directory(self, runner):
        result = runner.invoke(cli, [
            "evaluate", "--subject", "alice", "--resource", "crm", "--no-sample",
            "--context", json.dumps(CONTEXT),
        ])
        assert result.exit_code == 1
        assert json.loads(result.output)["reason_code"] == "UnknownSubject"

    def test_evaluate_bad_context(self, runner):
        result = runner.invoke(cli, [
            "evaluate", "--subject", "alice", "--resource", "crm", "--context", "{nope",
        ])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_evaluate_invalid_request(self, runner):
        result = runner.invoke(cli, ["evaluate", "--subject", "", "--resource", "crm"])
        assert result.exit_code == 1
        assert "subject_id" in result.output

    def test_policy_list(self, runner):
        result = runner.invoke(cli, ["policy", "list"])
        assert result.exit_code == 0
        assert "identity-mfa" in result.output
        assert "Total: 10" in result.output

    def test_policy_list_domain(self, runner):
        result = runner.invoke(cli, ["policy", "list", "--domain", "data"])
        assert result.exit_code == 0
        assert "data-encryption" in result.output
        assert "identity-mfa" not in result.output

    def test_policy_list_unknown_domain(self, runner):
        result = runner.invoke(cli, ["policy", "list", "--domain", "perimeter"])
        assert result.exit_code == 2

    def test_policy_define(self, runner, tmp_path):
        path = tmp_path / "policies.yaml"
        path.write_text(POLICY_YAML)
        result = runner.invoke(cli, ["policy", "define", str(path)])
        assert result.exit_code == 0, result.output
        assert "Loaded 1 policies" in result.output
        assert "custom-geo" in result.output

    def test_policy_define_duplicate(self, runner, tmp_path):
        path = tmp_path / "dup.yaml"
        path.write_text("policy_id: identity-mfa\nname: Again\ndomain: identity\n")
        result = runner.invoke(cli, ["policy", "define", str(path)])
        assert result.exit_code == 1
        assert "already registered" in result.output

    def test_policy_retire(self, runner):
        result = runner.invoke(cli, ["policy", "retire", "network-segmentation"])
        assert result.exit_code == 0
        assert "Retired network-segmentation" in result.output

    def test_policy_retire_unknown(self, runner):
        result = runner.invoke(cli, ["policy", "retire", "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_assess(self, runner):
        result = runner.invoke(cli, ["assess"])
        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["total_policies"] == 10

    def test_monitor(self, runner, tmp_path):
        result = runner.invoke(cli, [
            "monitor", "--report-dir", str(tmp_path), "--ticks", "2", "--interval", "0.01",
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "latest.json").exists()
        assert len(list(tmp_path.glob("assessment-*.json"))) >= 2

    def test_monitor_needs_report_dir(self, runner):
        result = runner.invoke(cli, ["monitor"])
        assert result.exit_code == 2

    def test_config_option(self, runner, tmp_path):
        cfg = tmp_path / "zt.yaml"
        cfg.write_text("require_mfa: false\n")
        context = {k: v for k, v in CONTEXT.items() if k != "mfa_factor"}
        result = runner.invoke(cli, [
            "--config", str(cfg), "evaluate", "--subject", "alice", "--resource", "crm",
            "--context", json.dumps(context),
        ])
        assert result.exit_code == 0, result.output

    def test_invalid_config(self, runner, tmp_path):
        cfg = tmp_path / "zt.yaml"
        cfg.write_text("device_trust_threshold: 500\n")
        result = runner.invoke(cli, ["--config", str(cfg), "assess"])
        assert result.exit_code == 1
        assert "invalid configuration" in result.output

    def test_demo(self, runner):
        result = runner.invoke(cli, ["demo"])
        assert result.exit_code == 0
        assert "UnknownSubject" in result.output
        assert "ALLOW" in result.output
        assert "TransitionNotAllowed" in result.output
        assert "Demo complete" in result.output


class TestSampleEngine:
    def test_sample_directory(self):
        engine = sample_engine()
        assert engine.identity.provider.is_blocked("mallory")
        assert engine.device.get_device("dev-001").posture.disk_encryption
        assert engine.application.get_application("crm") is not None

"""
ZeroTrust-Gate Command Line Interface.

Commands: evaluate, policy, assess, monitor, demo
"""

from __future__ import annotations

import json
import logging
import time

import click

from . import __version__
from .access import AccessRequest
from .access.engine import ZeroTrustEngine
from .assessment import JsonFileSink
from .config import ZeroTrustConfig
from .exceptions import ConfigError, PolicyError, ValidationError
from .identity.models import Device, Identity, PostureFlags


def sample_engine(config: ZeroTrustConfig | None = None) -> ZeroTrustEngine:
    """Engine pre-loaded with a small directory of principals and assets."""
    engine = ZeroTrustEngine(config)

    registry = engine.identity.provider
    registry.register_identity(Identity("alice", "Alice Chen", email="alice@corp.io",
                                        department="engineering", roles=["developer"],
                                        mfa_factors={"totp", "push"}))
    registry.register_identity(Identity("bob", "Bob Martinez", email="bob@corp.io",
                                        department="finance", roles=["analyst"],
                                        mfa_factors={"sms"}))
    registry.register_identity(Identity("mallory", "Mallory Quinn", department="contractor",
                                        mfa_factors={"password"}, blocked=True))
    registry.register_identity(Identity("svc-api", "API Service", identity_type="service",
                                        roles=["service-account"], mfa_factors={"totp"}))

    engine.device.register_device(Device("dev-001", "alice-laptop", owner_id="alice",
                                         posture=PostureFlags(antivirus=True, firewall=True,
                                                              disk_encryption=True)))
    engine.device.register_device(Device("dev-002", "bob-phone", device_type="mobile",
                                         owner_id="bob", posture=PostureFlags(firewall=True)))

    engine.application.register_application("crm", "Customer CRM", users=["alice", "bob"])
    engine.application.register_application("payroll", "Payroll", users=["bob"])
    engine.data.authorize_subject("Confidential", "alice")
    engine.data.authorize_subject("Restricted", "alice")
    return engine


def _load_engine(ctx: click.Context, sample: bool = True) -> ZeroTrustEngine:
    config = ctx.obj["config"]
    return sample_engine(config) if sample else ZeroTrustEngine(config)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="YAML configuration file")
@click.option("--log-level", default="WARNING",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
              help="Logging verbosity")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str):
    """ZeroTrust-Gate: fail-closed, multi-domain access decisions"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = ZeroTrustConfig.load(config_path) if config_path else ZeroTrustConfig()
    except ConfigError as e:
        raise click.ClickException(f"invalid configuration: {e}")
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.option("--subject", required=True, help="Subject (principal) ID")
@click.option("--resource", required=True, help="Resource / application ID")
@click.option("--action", default="read", help="Requested action")
@click.option("--context", "context_json", default="{}", help="Request context as a JSON object")
@click.option("--sample/--no-sample", default=True, help="Pre-load the sample directory")
@click.pass_context
def evaluate(ctx: click.Context, subject: str, resource: str, action: str,
             context_json: str, sample: bool):
    """Evaluate one access request and print the decision."""
    try:
        context = json.loads(context_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--context")

    engine = _load_engine(ctx, sample)
    try:
        decision = engine.evaluate(AccessRequest(subject, resource, action, context=context))
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(decision.to_dict(), indent=2))
    ctx.exit(0 if decision.allowed else 1)


# --- Policy ---

@cli.group()
def policy():
    """Inspect and manage policies."""


@policy.command("list")
@click.option("--domain", default=None, help="Only show one domain")
@click.option("--file", "policy_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Additional YAML policy file")
@click.pass_context
def policy_list(ctx: click.Context, domain: str | None, policy_file: str | None):
    """List registered policies."""
    engine = _load_engine(ctx, sample=False)
    if policy_file:
        _load_policy_file(engine, policy_file)

    try:
        policies = engine.registry.list_by_domain(domain) if domain else engine.registry.list_all()
    except ValueError:
        raise click.BadParameter(f"unknown domain: {domain}", param_hint="--domain")

    click.echo(f"{'POLICY':28s} {'DOMAIN':12s} {'RISK':9s} ENFORCED")
    for p in policies:
        click.echo(f"{p.policy_id:28s} {p.domain.value:12s} {p.risk_level.value:9s} "
                   f"{'yes' if p.enforced else 'no'}")
    click.echo(f"\nTotal: {len(policies)}, enforcement ratio: {engine.registry.enforcement_ratio():.2%}")


@policy.command("define")
@click.argument("policy_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def policy_define(ctx: click.Context, policy_file: str):
    """Register policies from a YAML file and print the resulting set."""
    engine = _load_engine(ctx, sample=False)
    loaded = _load_policy_file(engine, policy_file)
    click.echo(f"[+] Loaded {len(loaded)} policies from {policy_file}")
    click.echo(engine.registry.export_yaml())


@policy.command("retire")
@click.argument("policy_id")
@click.option("--file", "policy_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Additional YAML policy file")
@click.pass_context
def policy_retire(ctx: click.Context, policy_id: str, policy_file: str | None):
    """Retire (un-enforce) a policy and print the resulting set."""
    engine = _load_engine(ctx, sample=False)
    if policy_file:
        _load_policy_file(engine, policy_file)
    try:
        retired = engine.retire_policy(policy_id)
    except PolicyError as e:
        raise click.ClickException(str(e))
    click.echo(f"[+] Retired {retired.policy_id}")
    click.echo(engine.registry.export_yaml())


def _load_policy_file(engine: ZeroTrustEngine, path: str):
    with open(path) as f:
        try:
            return engine.registry.load_yaml(f.read())
        except PolicyError as e:
            raise click.ClickException(f"{path}: {e}")


# --- Assessment ---

@cli.command()
@click.option("--recent", default=None, type=int, help="Decisions to include")
@click.pass_context
def assess(ctx: click.Context, recent: int | None):
    """Print an on-demand assessment report as JSON."""
    engine = _load_engine(ctx)
    click.echo(json.dumps(engine.generate_report(recent).to_dict(), indent=2))


@cli.command()
@click.option("--report-dir", default=None, type=click.Path(file_okay=False),
              help="Directory the reports are written to (default: sink.report_dir)")
@click.option("--ticks", default=1, help="Number of reports to produce")
@click.option("--interval", default=1.0, help="Seconds between reports")
@click.pass_context
def monitor(ctx: click.Context, report_dir: str | None, ticks: int, interval: float):
    """Run the background assessment monitor for a number of ticks."""
    report_dir = report_dir or ctx.obj["config"].sink.report_dir
    if not report_dir:
        raise click.UsageError("no report directory: pass --report-dir or set sink.report_dir")
    engine = _load_engine(ctx)
    sink = JsonFileSink(report_dir)
    mon = engine.create_monitor(sink, interval=interval)

    click.echo(f"[*] Monitoring every {interval}s, writing to {report_dir}")
    mon.start()
    try:
        while mon.ticks < ticks and mon.is_running:
            time.sleep(min(interval, 0.05))
    finally:
        mon.stop()

    status = mon.status()
    click.echo(f"[+] {status['ticks']} ticks, {status['failures']} failures, "
               f"last report: {status['last_report_id']}")
    if status["failures"]:
        ctx.exit(1)


@cli.command()
@click.pass_context
def demo(ctx: click.Context):
    """Run the reference access scenarios end to end."""
    click.echo("=" * 60)
    click.echo("  ZeroTrust-Gate  -  Access Scenarios")
    click.echo("=" * 60)

    engine = _load_engine(ctx)
    full_context = {
        "mfa_factor": "totp",
        "device_id": "dev-001",
        "device_info": {"antivirus": True, "firewall": True, "disk_encryption": True},
        "source_segment": "External",
        "target_segment": "Internal",
        "time": "09:30",
        "location": "us-east",
        "device": "dev-001",
        "classification": "Confidential",
        "encrypted": True,
        "data_id": "crm-accounts",
    }
    scenarios = [
        ("Unknown subject", AccessRequest("eve", "crm", context=dict(full_context))),
        ("Trusted subject, compliant device", AccessRequest("alice", "crm", context=dict(full_context))),
        ("External to Secure segment", AccessRequest(
            "alice", "crm", context={**full_context, "target_segment": "Secure"})),
    ]

    for i, (title, request) in enumerate(scenarios, 1):
        click.echo(f"\n[{i}/{len(scenarios)}] {title}")
        decision = engine.evaluate(request)
        click.echo(f"    {request.subject_id} -> {request.resource_id}: "
                   f"{decision.outcome.value.upper()} ({decision.reason_code})")
        for r in decision.domain_results:
            click.echo(f"      {r.domain.value:12s} {'pass' if r.passed else 'FAIL'}  {r.reason_code}")

    report = engine.generate_report()
    click.echo(f"\n[*] Assessment: {report.enforced_policies}/{report.total_policies} policies enforced, "
               f"deny rate {report.decision_summary['deny_rate']:.0%}")
    for rec in report.recommendations:
        click.echo(f"    - {rec}")

    click.echo("\n" + "=" * 60)
    click.echo("  Demo complete.")
    click.echo("=" * 60)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()

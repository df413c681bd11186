"""
AD Health Engine — Main Orchestrator

Usage:
    python -m ad_health_engine                                  # discover DCs from AD
    python -m ad_health_engine --hosts dc01.corp.local dc02.corp.local
    python -m ad_health_engine --hosts-file dcs.txt --parallel 4
    python -m ad_health_engine --config config.json --open
    python -m ad_health_engine --skip-dcdiag --formats html json

This tool is STRICTLY READ-ONLY. It will NEVER modify a domain controller.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
import webbrowser
from pathlib import Path
from typing import Optional

import httpx

from . import __version__
from .auth.authenticator import AuthenticationError, Authenticator
from .config import OUTPUT_FORMATS, CertificateAuth, EngineConfig
from .discovery import (
    DirectoryDiscovery,
    DiscoveryError,
    InfrastructureInfo,
    SyncStatus,
    SyncStatusCollector,
)
from .engine import HealthCheckEngine
from .graph.client import GraphClient
from .probes import HostProbeResult
from .reporting import export_csv, export_html, export_json
from .safety.guardian import SafetyGuardian, SafetyViolation
from .scoring import Classifier, RunSummary, Tier, compute_summary
from .shell.runner import CommandRunner

logger = logging.getLogger("ad_health_engine")

_TIER_ICONS = {
    Tier.PASS: "✅",
    Tier.WARN: "⚠ ",
    Tier.FAIL: "❌",
    Tier.NOT_APPLICABLE: "➖",
}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ad_health_engine",
        description="Active Directory Domain Controller Health Check (READ-ONLY)",
    )

    # --- Sources ---
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--hosts",
        nargs="+",
        default=None,
        help="Domain controllers to check (skips AD discovery)",
    )
    parser.add_argument(
        "--hosts-file",
        type=Path,
        default=None,
        help="File with one domain controller per line",
    )
    parser.add_argument(
        "--domain",
        type=str,
        default=None,
        help="Only discover domain controllers of this domain",
    )

    # --- Probing ---
    parser.add_argument(
        "--parallel",
        type=int,
        default=None,
        help="Number of hosts probed concurrently (default: 1, sequential)",
    )
    parser.add_argument(
        "--tests",
        nargs="+",
        default=None,
        help="dcdiag sub-tests to run (default: built-in list)",
    )
    parser.add_argument(
        "--skip-dcdiag",
        action="store_true",
        help="Do not run dcdiag",
    )
    parser.add_argument(
        "--skip-certificate",
        action="store_true",
        help="Do not check the LDAPS certificate",
    )
    parser.add_argument(
        "--skip-infrastructure",
        action="store_true",
        help="Do not collect forest/domain information",
    )

    # --- Directory sync check (optional) ---
    parser.add_argument(
        "--tenant-id",
        type=str,
        default=None,
        help="Tenant ID for the directory sync check (use with --client-id)",
    )
    parser.add_argument(
        "--client-id",
        type=str,
        default=None,
        help="App registration client ID for the directory sync check",
    )
    parser.add_argument(
        "--cert-path",
        type=Path,
        default=None,
        help="Path to base64-encoded PFX certificate (default: ./base64.txt)",
    )

    # --- Output ---
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Output directory for reports (default: ./ad_health_output)",
    )
    parser.add_argument(
        "--formats",
        nargs="+",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output formats to generate",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the HTML report in the default browser when done",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Build engine configuration from the config file and CLI overrides."""
    if args.config:
        if not args.config.exists():
            print(f"\n❌ Config file not found: {args.config}")
            sys.exit(1)
        config = EngineConfig.from_file(args.config)
    else:
        config = EngineConfig()

    if args.hosts:
        config.discovery.hosts = list(args.hosts)
    if args.hosts_file:
        config.discovery.hosts_file = str(args.hosts_file)
    if args.domain:
        config.discovery.domain = args.domain
    if args.skip_infrastructure:
        config.discovery.collect_infrastructure = False

    if args.parallel is not None:
        config.probes.parallel_hosts = max(1, args.parallel)
    if args.tests:
        config.probes.dcdiag_tests = list(args.tests)
    if args.skip_dcdiag:
        config.probes.enable_dcdiag = False
    if args.skip_certificate:
        config.probes.check_ldaps_certificate = False

    if args.tenant_id and args.client_id:
        config.auth.certificate = CertificateAuth(
            tenant_id=args.tenant_id,
            client_id=args.client_id,
            certificate_path=str(args.cert_path) if args.cert_path else "./base64.txt",
        )
    elif args.tenant_id or args.client_id:
        print("\n❌ --tenant-id and --client-id must be given together.")
        sys.exit(1)
    if args.cert_path and config.auth.certificate:
        config.auth.certificate.certificate_path = str(args.cert_path)

    if args.output_dir:
        config.output.base_dir = str(args.output_dir)
    if args.formats:
        config.output.formats = list(args.formats)
    if args.open:
        config.output.open_report = True
    if args.verbose:
        config.verbose = True

    return config


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def _phase(title: str) -> None:
    print("\n" + "=" * 70)
    print(f" {title}")
    print("=" * 70)


async def collect_sync_status(
    config: EngineConfig, guardian: SafetyGuardian
) -> Optional[SyncStatus]:
    """Directory sync state from Graph, or None when no tenant is configured."""
    if not config.auth.enabled:
        return None

    print("\n🔐 Authenticating to Microsoft Graph...")
    try:
        token = await Authenticator(config.auth.certificate).acquire_token()
    except (AuthenticationError, OSError, ValueError) as e:
        print(f"  ❌ Authentication failed — {e}")
        logger.warning(f"Directory sync check skipped: {e}")
        return None
    print("  ✅ Authentication successful.")

    async with GraphClient(access_token=token, guardian=guardian) as client:
        status = await SyncStatusCollector(client).collect()
        logger.debug(f"Graph stats: {client.get_stats()}")
    return status


def print_host_line(result: HostProbeResult, tier: Tier) -> None:
    state = "reachable" if result.reachable else "UNREACHABLE"
    print(f"  {_TIER_ICONS[tier]} {result.host_name:40s} {state:12s} "
          f"({result.duration_seconds:.1f}s)")
    for error in result.errors:
        print(f"      ⚠  {error}")


def generate_reports(
    results: list[HostProbeResult],
    summary: RunSummary,
    classifier: Classifier,
    infrastructure: Optional[InfrastructureInfo],
    guardian: SafetyGuardian,
    output_dir: Path,
    run_id: str,
    formats: list[str],
) -> list[Path]:
    """Generate all requested report formats."""
    created = []

    if "html" in formats:
        path = export_html(results, summary, classifier, infrastructure, output_dir, run_id)
        created.append(path)
        print(f"  🌐 HTML:       {path}")

    if "csv" in formats:
        paths = export_csv(results, summary, classifier, output_dir, run_id)
        created.extend(paths)
        for p in paths:
            print(f"  📊 CSV:        {p}")

    if "json" in formats:
        path = export_json(
            results, summary, infrastructure, guardian.get_audit_record(), output_dir, run_id
        )
        created.append(path)
        print(f"  📄 JSON:       {path}")

    return created


async def main_async(argv: Optional[list[str]] = None) -> int:
    """Async entry point. Returns the process exit code."""
    args = parse_args(argv)
    config = build_config(args)
    configure_logging(config.verbose)

    # --- Safety banner ---
    guardian = SafetyGuardian()
    guardian.print_banner()

    print("=" * 70)
    print(f" AD Health Engine v{__version__}")
    print(" Mode: READ-ONLY — No domain controller will be modified")
    print("=" * 70)

    run_id = config.output.timestamp + "_" + uuid.uuid4().hex[:8]
    output_dir = config.output.report_dir

    print(f"\n📋 Run ID:  {run_id}")
    print(f"📂 Output:  {output_dir.resolve()}")

    runner = CommandRunner(
        guardian,
        timeout=config.probes.command_timeout_seconds,
        powershell=config.probes.powershell,
        fallback_encoding=config.probes.fallback_encoding,
    )

    # --- Discovery Phase ---
    _phase("PHASE 1: DISCOVERY")
    discovery = DirectoryDiscovery(runner, config.discovery)
    try:
        hosts = await discovery.enumerate_hosts()
    except (DiscoveryError, SafetyViolation) as e:
        print(f"\n❌ {e}")
        return 1
    print(f"\n  Found {len(hosts)} domain controllers:")
    for host in hosts:
        print(f"    • {host}")

    infrastructure: Optional[InfrastructureInfo] = None
    if config.discovery.collect_infrastructure:
        infrastructure = await discovery.infrastructure()
        if infrastructure.available:
            print(f"\n  🌲 Forest: {infrastructure.forest_name} ({infrastructure.forest_mode})")
        for error in infrastructure.errors:
            print(f"      ⚠  {error}")

    try:
        sync_status = await collect_sync_status(config, guardian)
    except (httpx.HTTPError, SafetyViolation) as e:
        print(f"  ❌ Directory sync check failed — {e}")
        sync_status = None
    if sync_status is not None:
        if infrastructure is None:
            infrastructure = InfrastructureInfo()
        infrastructure.sync_status = sync_status

    # --- Probe Phase ---
    _phase("PHASE 2: HOST PROBES")
    engine = HealthCheckEngine(config.probes, runner, extra_locales=config.dcdiag_locales)
    mode = "sequentially" if config.probes.parallel_hosts <= 1 else \
        f"{config.probes.parallel_hosts} at a time"
    print(f"\n  Probing {len(hosts)} hosts {mode}...\n")
    results = await engine.run(hosts)

    # --- Classification Phase ---
    _phase("PHASE 3: CLASSIFICATION")
    classifier = Classifier.from_config(config.thresholds)
    summary = compute_summary(results, classifier)
    print()
    for result, host in zip(results, summary.hosts):
        print_host_line(result, host.overall)

    print(f"\n  Reachable:        {summary.reachable_count}/{summary.host_count}")
    print(f"  Overall:          {summary.overall.value.upper()}")
    print("  Checks:           " + ", ".join(
        f"{k} {v}" for k, v in summary.tier_counts.items()
    ))

    # --- Reporting Phase ---
    _phase("PHASE 4: REPORT GENERATION")
    print()
    created_files = generate_reports(
        results=results,
        summary=summary,
        classifier=classifier,
        infrastructure=infrastructure,
        guardian=guardian,
        output_dir=output_dir,
        run_id=run_id,
        formats=config.output.formats,
    )

    html_files = [p for p in created_files if p.suffix == ".html"]
    if config.output.open_report and html_files:
        webbrowser.open(html_files[0].resolve().as_uri())

    _phase("HEALTH CHECK COMPLETE")
    print(f"\n  Status:   {summary.overall.value.upper()}")
    print(f"  Commands: {runner.commands_run} executed, "
          f"{guardian.checks_performed} safety checks")
    print(f"  Files:    {len(created_files)} reports generated")
    print(f"  Path:     {output_dir.resolve()}")
    print()
    return 0


def main():
    """Synchronous entry point for `python -m ad_health_engine`."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()

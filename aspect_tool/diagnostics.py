"""Diagnostics for the ``check`` command."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from eth_account import Account
from web3 import Web3

from .config import resolve_addresses, resolve_config
from .constants import CONFIG_FILE_NAME, DEFAULT_BUILD_DIR, DEFAULT_NETWORK, ENV_FILE_NAME
from .errors import ConfigError, RegistryError
from .registry import deployments_path, load_deployments


def _section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def run_checks(base_dir: Optional[Path] = None, network: str = DEFAULT_NETWORK) -> List[str]:
    """Print a configuration report and return the issues found."""
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    issues: List[str] = []

    _section("1. Project configuration")
    config_path = base / CONFIG_FILE_NAME
    env_path = base / ENV_FILE_NAME
    print(f"  {'✓' if config_path.exists() else '✗'} {CONFIG_FILE_NAME:20} {config_path}")
    print(f"  {'✓' if env_path.exists() else '○'} {ENV_FILE_NAME:20} {env_path if env_path.exists() else 'not found (optional)'}")

    try:
        config = resolve_config(base, network)
    except ConfigError as exc:
        print(f"  ✗ network '{network}': {exc}")
        issues.append(str(exc))
    else:
        url = config.node_url
        display = url[:40] + "..." if len(url) > 40 else url
        print(f"  ✓ {'url':20} = {display}")
        print(f"  ✓ {'private key':20} = {config.masked_key()}")
        try:
            sender = Account.from_key(config.private_key)
        except (ValueError, TypeError):
            print(f"  ✗ {'sender':20} = private key could not be parsed")
            issues.append("Private key could not be parsed")
        else:
            print(f"  ✓ {'sender':20} = {sender.address}")

    _section("2. System contract addresses")
    addresses = resolve_addresses()
    for label, value in (
        ("registry (deploy)", addresses.registry),
        ("aspect (bind)", addresses.aspect),
        ("aspect core (unbind)", addresses.aspect_core),
    ):
        if Web3.is_address(value):
            print(f"  ✓ {label:20} = {value}")
        else:
            print(f"  ✗ {label:20} = {value} (invalid)")
            issues.append(f"Invalid {label} address: {value}")
    if len({addresses.registry.lower(), addresses.aspect.lower(), addresses.aspect_core.lower()}) > 1:
        print("  ⚠️  deploy, bind and unbind target different addresses")

    _section("3. Build artifacts")
    build_dir = base / DEFAULT_BUILD_DIR
    if not build_dir.exists():
        print(f"  ○ {build_dir} does not exist yet")
        print("  → Run: aspect-tool compile")
    else:
        artifacts = sorted(p for p in build_dir.iterdir() if p.suffix in (".bin", ".wasm"))
        if artifacts:
            for artifact in artifacts:
                print(f"    - {artifact.relative_to(base)} ({artifact.stat().st_size:,} bytes)")
        else:
            print("  ⚠️  No compiled Aspect binaries found")
        try:
            records = load_deployments(deployments_path(base))
        except RegistryError as exc:
            print(f"  ✗ {exc}")
            issues.append(str(exc))
        else:
            print(f"  {len(records)} recorded deployment(s)")

    _section("Summary")
    if issues:
        print(f"\n⚠️  Found {len(issues)} issue(s) to fix:\n")
        for i, issue in enumerate(issues, 1):
            print(f"  {i}. {issue}")
    else:
        print("\n✅ All checks passed!")
    return issues

from __future__ import annotations

import argparse
import asyncio
import json
import shlex
from typing import List, Optional, Sequence

from .constants import (
    COMPILE_TARGETS,
    COMPILER_COMMAND,
    DEFAULT_ARTIFACT_EXT,
    DEFAULT_ENTRY_FILE,
    DEFAULT_NETWORK,
    DEFAULT_RECEIPT_TIMEOUT,
    DEFAULT_TARGET,
    JOIN_POINTS,
)
from .errors import AspectToolError, RegistryError


def _split_join_points(values: Optional[Sequence[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    points: List[str] = []
    for value in values:
        points.extend(part.strip() for part in value.split(",") if part.strip())
    return points


def _add_tx_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--gas", default=None, help="Gas limit (default: 9000000)")
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_RECEIPT_TIMEOUT,
        help=f"Seconds to wait for the receipt (default: {DEFAULT_RECEIPT_TIMEOUT})",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aspect-tool", description="Compile and manage Artela Aspects.")
    parser.add_argument("--network", default=DEFAULT_NETWORK, help=f"Network in hardhat.config.js (default: {DEFAULT_NETWORK})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    comp = sub.add_parser("compile", help="Compile an Aspect with the AssemblyScript compiler.")
    comp.add_argument("--entry", default=DEFAULT_ENTRY_FILE, help=f"Entry file (default: {DEFAULT_ENTRY_FILE})")
    comp.add_argument("--target", default=DEFAULT_TARGET, choices=COMPILE_TARGETS)
    comp.add_argument("--output", "-o", default=None, help="Output file (default: build/<name>[_debug].bin)")
    comp.add_argument("--ext", default=DEFAULT_ARTIFACT_EXT, help="Extension for the derived output file.")
    comp.add_argument(
        "--compiler",
        default=" ".join(COMPILER_COMMAND),
        help=f"Compiler command (default: {' '.join(COMPILER_COMMAND)})",
    )

    deploy = sub.add_parser("deploy", help="Deploy a compiled Aspect.")
    deploy.add_argument("--binary", "--wasm", dest="binary", required=True, help="Compiled Aspect binary.")
    deploy.add_argument("--properties", default=None, help='JSON array, e.g. [{"key":"owner","value":"0x..."}]')
    deploy.add_argument(
        "--join-points",
        nargs="*",
        default=None,
        help=f"Join points: {', '.join(JOIN_POINTS)} (space or comma separated)",
    )
    deploy.add_argument("--no-record", action="store_true", help="Do not record the deployment in build/aspects.json.")
    _add_tx_arguments(deploy)

    for name, text in (("bind", "Bind an Aspect to a contract."), ("unbind", "Unbind an Aspect from a contract.")):
        cmd = sub.add_parser(name, help=text)
        cmd.add_argument("--contract", required=True, help="Target contract address.")
        cmd.add_argument("--aspect-id", required=True, help="Deployed Aspect id.")
        _add_tx_arguments(cmd)

    sub.add_parser("check", help="Check configuration, addresses and build artifacts.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    from .logging_utils import get_logger

    parser = _build_parser()
    args = parser.parse_args(argv)
    logger = get_logger(args.verbose)

    try:
        if args.cmd == "compile":
            from .compiler import CompileRequest, compile_aspect_async

            request = CompileRequest(entry_file=args.entry, target=args.target, output=args.output, ext=args.ext)
            result = asyncio.run(compile_aspect_async(request, compiler=shlex.split(args.compiler)))
            return result.exit_code

        if args.cmd == "deploy":
            from .aspect import DeployRequest, deploy_aspect
            from .registry import record_deployment

            request = DeployRequest(
                binary_path=args.binary,
                properties=args.properties,
                join_points=_split_join_points(args.join_points),
                gas=args.gas,
            )
            result = deploy_aspect(request, network=args.network, timeout=args.timeout)
            print(json.dumps(result.receipt, indent=2, default=str))
            print(f"Aspect ID: {result.aspect_id}")
            if not args.no_record:
                try:
                    path = record_deployment(
                        result.to_state(),
                        network=args.network,
                        binary=args.binary,
                    )
                except RegistryError as exc:
                    logger.warning("Deployment not recorded: %s", exc)
                else:
                    logger.info("Recorded deployment in %s", path)
            return 0

        if args.cmd in ("bind", "unbind"):
            from .aspect import bind_aspect, unbind_aspect

            flow = bind_aspect if args.cmd == "bind" else unbind_aspect
            result = flow(args.contract, args.aspect_id, args.gas, network=args.network, timeout=args.timeout)
            print(json.dumps(result.receipt, indent=2, default=str))
            return 0

        if args.cmd == "check":
            from .diagnostics import run_checks

            return 1 if run_checks(network=args.network) else 0
    except AspectToolError as exc:
        logger.error(str(exc))
        return exc.exit_code

    parser.error(f"unknown command: {args.cmd}")
    return 2

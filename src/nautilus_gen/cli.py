"""
nautilus-gen command line.

Examples:
  nautilus-gen build                          # program from [tool.nautilus].program
  nautilus-gen build --program my_program --out-dir target/nautilus
  nautilus-gen inspect --program my_program   # print the instruction table
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nautilus_gen.constants import DEFAULT_MANIFEST, DEFAULT_OUT_DIR
from nautilus_gen.errors import GenerationError, ManifestError
from nautilus_gen.ir import Dispatcher
from nautilus_gen.logging import JsonlLogger, default_run_id
from nautilus_gen.manifest import Manifest, load_manifest
from nautilus_gen.pipeline import BuildResult, build_program, load_program, write_artifacts

logger = logging.getLogger(__name__)
console = Console()


def _resolve(args: argparse.Namespace) -> tuple[Manifest, str]:
    manifest = load_manifest(args.manifest)
    program = args.program or manifest.program
    if not program:
        raise ManifestError(str(args.manifest), "no program module: set [tool.nautilus].program or pass --program")
    return manifest, program


def _build(args: argparse.Namespace) -> BuildResult:
    manifest, program = _resolve(args)
    module = load_program(program, search_path=args.manifest.resolve().parent)
    events = None
    if args.log_dir is not None:
        events = JsonlLogger(base_dir=args.log_dir, run_id=default_run_id(prefix=manifest.name))
        events.write_run_metadata(
            {
                "program": manifest.name,
                "version": manifest.version,
                "module": program,
                "manifest": str(args.manifest),
                "started_at_unix_seconds": int(time.time()),
            }
        )
    try:
        return build_program(module, manifest, events=events)
    except GenerationError as e:
        if events is not None:
            events.event("failed", **e.to_dict())
        raise


def print_instructions(dispatcher: Dispatcher) -> None:
    table = Table(title=f"{dispatcher.program} {dispatcher.version}", show_header=True)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Instruction", style="bold")
    table.add_column("Accounts")
    table.add_column("Args", style="dim")
    for v in dispatcher.variants:
        accounts = ", ".join(
            a.identity
            + ("[yellow] mut[/yellow]" if a.is_mut else "")
            + ("[magenta] signer[/magenta]" if a.is_signer else "")
            for a in v.accounts
        )
        args = ", ".join(f"{a.name}: {a.idl_type}" for a in v.args)
        table.add_row(str(v.discriminant), v.name, accounts or "-", args or "-")
    console.print(table)


def cmd_build(args: argparse.Namespace) -> None:
    result = _build(args)
    if args.dry_run:
        console.print(f"[green]✓[/green] {len(result.dispatcher.variants)} instructions (dry run, nothing written)")
        return
    entry_path, idl_path = write_artifacts(result, args.out_dir)
    console.print(f"[green]✓[/green] Dispatcher: {entry_path}")
    console.print(f"[green]✓[/green] IDL:        {idl_path}")


def cmd_inspect(args: argparse.Namespace) -> None:
    result = _build(args)
    print_instructions(result.dispatcher)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--manifest",
        type=Path,
        default=Path(DEFAULT_MANIFEST),
        help=f"Project manifest (default: {DEFAULT_MANIFEST}, env NAUTILUS_GEN_MANIFEST)",
    )
    p.add_argument("--program", type=str, help="Program module path (overrides [tool.nautilus].program)")
    p.add_argument("--log-dir", type=Path, help="Write build events (run_metadata.json, events.jsonl) here")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Generate an instruction dispatcher and IDL from a Nautilus program module",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_build = subparsers.add_parser("build", help="Write <name>_entrypoint.py and <name>.json")
    _add_common(p_build)
    p_build.add_argument(
        "--out-dir",
        type=Path,
        default=Path(DEFAULT_OUT_DIR),
        help=f"Artifact directory (default: {DEFAULT_OUT_DIR}, env NAUTILUS_GEN_OUT_DIR)",
    )
    p_build.add_argument("--dry-run", action="store_true", help="Analyse and render without writing")
    p_build.set_defaults(func=cmd_build)

    p_inspect = subparsers.add_parser("inspect", help="Print the instruction table")
    _add_common(p_inspect)
    p_inspect.set_defaults(func=cmd_inspect)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        args.func(args)
    except GenerationError as e:
        logger.debug("generation failed: %s", e.to_dict())
        console.print(f"[bold red]✗ error[{e.code}]:[/bold red] {escape(e.message)}", soft_wrap=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

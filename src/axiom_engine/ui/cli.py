"""Command-line interface router for axiom-engine."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml

from axiom_engine.config import load_config, profile_overrides
from axiom_engine.diffpatch import apply_patch, diff, patch_from_list, patch_to_list
from axiom_engine.domain import AxiomIR, Manifest
from axiom_engine.generation import generate
from axiom_engine.observability import setup_logging
from axiom_engine.store import ArtifactStore
from axiom_engine.sync import apply_manifest
from axiom_engine.verification import run_checks

YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 2

    def __str__(self) -> str:
        return self.message


class InputDocumentError(ValueError):
    """Raised when an input file is missing or is not a JSON/YAML object."""


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for every supported workflow."""

    parser = argparse.ArgumentParser(
        prog="axiom",
        description=(
            "axiom-engine — reproducible agent builds with verifiable evidence.\n\n"
            "Common workflows:\n"
            "  axiom generate agent.yaml --profile edge   Build a manifest from IR\n"
            "  axiom check manifest.json --ir agent.yaml  Re-run policy checks\n"
            "  axiom apply manifest.json --mode pr        Commit artifacts on a branch\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to axiom TOML config (default: ./axiom.toml if present).",
    )
    common.add_argument(
        "--log-level",
        default=None,
        help="Log level for stderr diagnostics (DEBUG, INFO, WARNING, ERROR).",
    )
    common.add_argument(
        "--log-format",
        choices=("json", "text"),
        default=None,
        help="Render diagnostics as JSON lines or key=value text.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # generate ------------------------------------------------------------
    generate_parser = subparsers.add_parser(
        "generate",
        parents=[common],
        help="Build a deterministic manifest from an IR document",
        description=(
            "Emit artifacts for every agent, score the agent checks, and print the\n"
            "manifest.\n\n"
            "Examples:\n"
            "  axiom generate agent.json\n"
            "  axiom generate agent.yaml --profile budget --out manifest.json --store\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    generate_parser.add_argument("ir", help="IR document (JSON or YAML).")
    generate_parser.add_argument("--profile", default=None, help="Deployment profile name.")
    generate_parser.add_argument(
        "--out", default=None, help="Write the manifest to this file instead of stdout."
    )
    generate_parser.add_argument(
        "--store",
        action="store_true",
        default=False,
        help="Persist every artifact into the content-addressed store.",
    )
    generate_parser.add_argument(
        "--dest", default=None, help="Repository root whose store receives artifacts."
    )
    generate_parser.set_defaults(handler=_cmd_generate)

    # check ---------------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Evaluate policy checks against an existing manifest",
    )
    check_parser.add_argument("manifest", help="Manifest JSON document.")
    check_parser.add_argument("--ir", default=None, help="IR document holding the checks.")
    check_parser.add_argument(
        "--out-root", default=None, help="Directory holding artifacts without inline content."
    )
    check_parser.add_argument(
        "--profile", default=None, help="Profile override (default: the manifest's profile)."
    )
    check_parser.set_defaults(handler=_cmd_check)

    # diff ----------------------------------------------------------------
    diff_parser = subparsers.add_parser(
        "diff", parents=[common], help="Print the patch that turns OLD into NEW"
    )
    diff_parser.add_argument("old", help="Old IR document.")
    diff_parser.add_argument("new", help="New IR document.")
    diff_parser.set_defaults(handler=_cmd_diff)

    # patch ---------------------------------------------------------------
    patch_parser = subparsers.add_parser(
        "patch", parents=[common], help="Apply a patch to an IR document"
    )
    patch_parser.add_argument("ir", help="IR document to patch.")
    patch_parser.add_argument("patch", help="Patch document (list of operations).")
    patch_parser.set_defaults(handler=_cmd_patch)

    # apply ---------------------------------------------------------------
    apply_parser = subparsers.add_parser(
        "apply",
        parents=[common],
        help="Write manifest artifacts to disk or a git branch",
        description=(
            "Materialize every artifact under <dest>/out after path and digest\n"
            "verification.\n\n"
            "Examples:\n"
            "  axiom apply manifest.json --dest ./site\n"
            "  axiom apply manifest.json --mode patch-request --branch feature/x\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    apply_parser.add_argument("manifest", help="Manifest JSON document.")
    apply_parser.add_argument(
        "--mode",
        choices=("direct", "fs", "patch-request", "pr"),
        default=None,
        help="direct writes files; patch-request also branches and commits.",
    )
    apply_parser.add_argument("--dest", default=None, help="Destination repository root.")
    apply_parser.add_argument("--branch", default=None, help="Branch for patch-request mode.")
    apply_parser.add_argument("--message", default=None, help="Commit message override.")
    apply_parser.set_defaults(handler=_cmd_apply)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_generate(args: argparse.Namespace) -> int:
    config = _load_effective_config(args, profile=args.profile, destination_root=args.dest)
    ir = AxiomIR.from_dict(_load_document(args.ir))
    store = _artifact_store(config) if args.store else None
    result = generate(
        ir,
        config["profile"],
        store=store,
        extra_profiles=profile_overrides(config),
    )
    rendered = result.manifest.to_json()
    if args.out is None:
        print(rendered)
        return 0
    out_path = Path(args.out)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(rendered + "\n", encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"unable to write manifest to {args.out}: {exc}") from exc
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    manifest = Manifest.from_dict(_load_document(args.manifest))
    ir = AxiomIR.from_dict(_load_document(args.ir)) if args.ir else None
    report = run_checks(
        manifest,
        ir,
        out_root=args.out_root,
        profile=args.profile,
        extra_profiles=profile_overrides(config),
    )
    _emit_json(report.to_dict())
    return 0 if report.passed else 1


def _cmd_diff(args: argparse.Namespace) -> int:
    _load_effective_config(args)
    old = AxiomIR.from_dict(_load_document(args.old))
    new = AxiomIR.from_dict(_load_document(args.new))
    _emit_json(patch_to_list(diff(old, new)))
    return 0


def _cmd_patch(args: argparse.Namespace) -> int:
    _load_effective_config(args)
    ir = AxiomIR.from_dict(_load_document(args.ir))
    patch = patch_from_list(_load_document(args.patch, expect_object=False))
    _emit_json(apply_patch(ir, patch).to_dict())
    return 0


def _cmd_apply(args: argparse.Namespace) -> int:
    config = _load_effective_config(
        args,
        mode=args.mode,
        destination_root=args.dest,
        branch=args.branch,
        commit_message=args.message,
    )
    manifest = Manifest.from_dict(_load_document(args.manifest))
    result = apply_manifest(
        manifest,
        config["mode"],
        config["destination_root"],
        branch=config["branch"] or None,
        commit_message=config["commit_message"] or None,
        store=_artifact_store(config) if config["store_dir"] else None,
    )
    _emit_json(result.to_dict())
    return 0 if result.success else 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: object) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _load_effective_config(args: argparse.Namespace, **overrides: object) -> dict[str, Any]:
    cli_overrides: dict[str, object] = dict(overrides)
    cli_overrides["logging.level"] = args.log_level
    if args.log_format is not None:
        cli_overrides["logging.json"] = args.log_format == "json"

    config = load_config(args.config_path, cli_overrides=cli_overrides)
    logging_section = config["logging"]
    setup_logging(logging_section["level"], json_output=logging_section["json"])
    return config


def _artifact_store(config: Mapping[str, Any]) -> ArtifactStore:
    store_dir = config["store_dir"]
    return ArtifactStore(
        config["destination_root"],
        cache_dir=Path(store_dir) if store_dir else None,
    )


def _load_document(path_arg: str, *, expect_object: bool = True) -> object:
    path = Path(path_arg)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InputDocumentError(f"input file not found: {path_arg}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise InputDocumentError(f"unable to read {path_arg}: {exc}") from exc

    if path.suffix.lower() in YAML_SUFFIXES:
        document = yaml.safe_load(raw)
    else:
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InputDocumentError(f"invalid JSON in {path_arg}: {exc}") from exc

    if expect_object and not isinstance(document, dict):
        raise InputDocumentError(f"{path_arg} must contain a JSON/YAML object")
    return document


__all__ = ["CLIError", "InputDocumentError", "build_parser", "main", "run_cli"]

"""Command line entry point for ordering sidebar snapshots."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from .model import MODE_ALIASES, TIER_NAMES, Snapshot, ViewerContext
from .names import ResolutionError
from .ordering import explain_order, order_snapshot
from .settings import DEFAULT_SETTINGS_FILE, load_settings, persist_settings
from .snapshot_io import load_snapshot

MODE_CHOICES = MODE_ALIASES


def _with_overrides(snapshot: Snapshot, args: argparse.Namespace) -> Snapshot:
    viewer = snapshot.viewer
    if args.mode is None and args.active is None:
        return snapshot
    return Snapshot(
        conversations=snapshot.conversations,
        viewer=ViewerContext(
            viewer_id=viewer.viewer_id,
            active_conversation_id=args.active if args.active is not None else viewer.active_conversation_id,
            display_mode=MODE_CHOICES[args.mode] if args.mode is not None else viewer.display_mode,
            enabled_capabilities=viewer.enabled_capabilities,
        ),
    )


def _run_order(args: argparse.Namespace, output: TextIO) -> int:
    document = load_snapshot(args.snapshot, defaults=load_settings(args.settings))
    snapshot = _with_overrides(document.snapshot, args)
    resolver = document.resolver()

    if args.explain:
        for entry in explain_order(snapshot.conversations, snapshot.viewer, resolver):
            tier = "archived:" + TIER_NAMES[entry.tier] if entry.archived else TIER_NAMES[entry.tier]
            output.write(f"{entry.conv_id}\t{tier}\t{entry.label or ''}\n")
        return 0

    ordered = order_snapshot(snapshot, resolver)
    if args.json:
        output.write(json.dumps(ordered) + "\n")
    else:
        for conv_id in ordered:
            output.write(conv_id + "\n")
    return 0


def _run_settings(args: argparse.Namespace, output: TextIO) -> int:
    settings = load_settings(args.settings)
    if args.settings_command == "set-mode":
        settings["display_mode"] = MODE_CHOICES[args.mode]
        persist_settings(settings, args.settings)
    elif args.settings_command == "set-capabilities":
        settings["enabled_capabilities"] = sorted(set(args.capabilities))
        persist_settings(settings, args.settings)
    elif args.settings_command == "set-viewer":
        settings["viewer_id"] = args.viewer_id
        persist_settings(settings, args.settings)
    output.write(json.dumps(settings, indent=2, sort_keys=True) + "\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sidebar-order", description="Order chat sidebar snapshots")
    parser.add_argument(
        "--settings",
        type=Path,
        default=DEFAULT_SETTINGS_FILE,
        help="Path to the viewer settings file",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log ordering decisions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    order_parser = subparsers.add_parser("order", help="Print the ordered conversation ids")
    order_parser.add_argument("snapshot", type=Path, help="Path to a JSON snapshot document")
    order_parser.add_argument("--mode", choices=sorted(MODE_CHOICES), default=None, help="Override the display mode")
    order_parser.add_argument("--active", default=None, help="Override the active conversation id")
    output_group = order_parser.add_mutually_exclusive_group()
    output_group.add_argument("--json", action="store_true", help="Emit a JSON array")
    output_group.add_argument("--explain", action="store_true", help="Emit id, tier and label columns")

    settings_parser = subparsers.add_parser("settings", help="Show or update viewer settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show", help="Print the current settings")
    mode_parser = settings_sub.add_parser("set-mode", help="Persist the display mode")
    mode_parser.add_argument("mode", choices=sorted(MODE_CHOICES))
    caps_parser = settings_sub.add_parser("set-capabilities", help="Persist the enabled capabilities")
    caps_parser.add_argument("capabilities", nargs="*", help="Capability tags")
    viewer_parser = settings_sub.add_parser("set-viewer", help="Persist the viewer id")
    viewer_parser.add_argument("viewer_id")
    return parser


def main(argv: list[str] | None = None, output: TextIO | None = None, errors: TextIO | None = None) -> int:
    """Entry point for CLI commands."""

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    stream = output or sys.stdout
    error_stream = errors or sys.stderr

    try:
        if args.command == "order":
            return _run_order(args, stream)
        return _run_settings(args, stream)
    except (ValueError, ResolutionError, OSError) as exc:
        error_stream.write(f"error: {exc}\n")
        return 1


if __name__ == "__main__":  # pragma: no cover - convenience execution
    raise SystemExit(main())

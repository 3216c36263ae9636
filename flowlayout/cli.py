#!/usr/bin/env python3
"""Flow layout CLI - lay out, validate and summarize flow snapshot files."""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from .analysis import summarize_flow
from .config import LayoutConfig
from .layout import reposition_branching_group, run_layout
from .models import FlowSnapshot
from .validation import validate_snapshot, validation_summary

logger = logging.getLogger(__name__)


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _error_out(message):
    _json_out({"status": "error", "error": message}, code=1)


def _parse_list_arg(value):
    """Parse a list argument from a JSON array or a comma-separated string."""
    if value is None:
        return None
    try:
        parsed = json.loads(value)
        if isinstance(parsed, list):
            return [str(v) for v in parsed]
    except (json.JSONDecodeError, TypeError):
        pass
    return [v.strip() for v in value.split(",") if v.strip()]


def _load_snapshot(path):
    """Read a snapshot document ({"nodes": [...], "edges": [...]}) from a file or stdin."""
    try:
        if path == "-":
            data = json.load(sys.stdin)
        else:
            with open(path) as f:
                data = json.load(f)
    except OSError as e:
        _error_out(f"Cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        _error_out(f"Invalid JSON in {path}: {e}")

    try:
        return FlowSnapshot.from_json_dict(data)
    except ValidationError as e:
        _error_out(f"Invalid snapshot: {e.errors(include_url=False)}")


def _load_config(args):
    overrides = None
    if args.config:
        try:
            overrides = json.loads(args.config)
        except json.JSONDecodeError as e:
            _error_out(f"Invalid --config JSON: {e}")
    try:
        return LayoutConfig.from_env().merged(overrides)
    except ValidationError as e:
        _error_out(f"Invalid layout config: {e.errors(include_url=False)}")


def _write_output(data, output):
    if output:
        with open(output, "w") as f:
            json.dump(data, f, indent=2)
        _json_out({"status": "ok", "output": output})
    _json_out(data)


# ── Layout ───────────────────────────────────────────────────────────────────

def cmd_layout(args):
    snapshot = _load_snapshot(args.input)
    config = _load_config(args)
    selection = _parse_list_arg(args.select)
    if selection is None:
        selection = snapshot.selection

    result = run_layout(
        snapshot.nodes,
        snapshot.edges,
        root_hint=args.root or snapshot.root_hint,
        selection=selection,
        config=config,
    )
    data = result.to_dict() if args.diagnostics else FlowSnapshot(
        nodes=result.nodes, edges=result.edges
    ).to_json_dict()
    _write_output(data, args.output)


def cmd_reposition_slots(args):
    snapshot = _load_snapshot(args.input)
    config = _load_config(args)
    if snapshot.get_node(args.parent_id) is None:
        _error_out(f"Module not found: {args.parent_id}")

    nodes = reposition_branching_group(snapshot.nodes, args.parent_id, config)
    data = FlowSnapshot(nodes=nodes, edges=snapshot.edges).to_json_dict()
    _write_output(data, args.output)


# ── Analysis ─────────────────────────────────────────────────────────────────

def cmd_validate(args):
    snapshot = _load_snapshot(args.input)
    issues = validate_snapshot(snapshot.nodes, snapshot.edges)
    summary = validation_summary(issues)

    _json_out({
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": summary
    })


def cmd_summarize(args):
    snapshot = _load_snapshot(args.input)
    config = _load_config(args)
    summary = summarize_flow(snapshot.nodes, snapshot.edges, args.root or snapshot.root_hint, config)

    _json_out({
        "success": True,
        "summary": summary.to_dict()
    })


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(args):
    import uvicorn

    uvicorn.run("flowlayout.backend.main:app", host=args.host, port=args.port)


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Flow layout CLI")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    # Layout
    p = sub.add_parser("layout")
    p.add_argument("--input", required=True, help="Snapshot JSON file, or - for stdin")
    p.add_argument("--output", default=None)
    p.add_argument("--root", default=None)
    p.add_argument("--select", default=None, help="Node ids as JSON array or comma list")
    p.add_argument("--config", default=None, help="JSON object of config overrides")
    p.add_argument("--diagnostics", action="store_true")

    p = sub.add_parser("reposition-slots")
    p.add_argument("--input", required=True)
    p.add_argument("--parent-id", required=True)
    p.add_argument("--output", default=None)
    p.add_argument("--config", default=None)

    # Analysis
    p = sub.add_parser("validate")
    p.add_argument("--input", required=True)

    p = sub.add_parser("summarize")
    p.add_argument("--input", required=True)
    p.add_argument("--root", default=None)
    p.add_argument("--config", default=None)

    # Service
    p = sub.add_parser("serve")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8765)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), stream=sys.stderr)

    cmd_map = {
        "layout": cmd_layout,
        "reposition-slots": cmd_reposition_slots,
        "validate": cmd_validate,
        "summarize": cmd_summarize,
        "serve": cmd_serve,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()

# infra_diagram/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .analyze import analyze_template
from .config import DiagramConfig, load_config
from .diagram import generate_mermaid_from_infra
from .io import load_template_config, template_services
from .readme import ensure_architecture_diagram
from .render import render_mermaid_to_png
from .validate import validate_resources
from .writer import write_md


def _report(errors: list[str], warnings: list[str], strict: bool) -> int:
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if errors or (strict and warnings):
        for error in errors:
            print(f"error: {error}", file=sys.stderr)
        return 2
    return 0


def _cmd_generate(args: argparse.Namespace, cfg: DiagramConfig) -> int:
    result = generate_mermaid_from_infra(args.template, cfg)
    services = template_services(load_template_config(args.template))
    errors, warnings = validate_resources(result.resources, services)
    status = _report(errors, warnings, args.strict)
    if status:
        return status

    if args.out:
        write_md(args.out, args.title, result.diagram, result.source)
    else:
        sys.stdout.write(result.diagram)
    return 0


def _cmd_validate(args: argparse.Namespace, cfg: DiagramConfig) -> int:
    result = generate_mermaid_from_infra(args.template, cfg)
    services = template_services(load_template_config(args.template))
    errors, warnings = validate_resources(result.resources, services)
    return _report(errors, warnings, args.strict)


def _cmd_render(args: argparse.Namespace, cfg: DiagramConfig) -> int:
    result = generate_mermaid_from_infra(args.template, cfg)
    out_dir: Path = args.out_dir or (args.template / cfg.images_dir)
    name = render_mermaid_to_png(result.diagram, out_dir, cfg)
    if name is None:
        print(f"error: could not render diagram into {out_dir}", file=sys.stderr)
        return 1
    print(out_dir / name)
    return 0


def _cmd_insert(args: argparse.Namespace, cfg: DiagramConfig) -> int:
    inserted = ensure_architecture_diagram(args.template, cfg, render=not args.no_render)
    print("inserted" if inserted else "skipped")
    return 0


def _cmd_analyze(args: argparse.Namespace, cfg: DiagramConfig) -> int:
    analysis = analyze_template(args.template, cfg)
    print(json.dumps(analysis, indent=2, ensure_ascii=False))
    return 1 if "error" in analysis else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="infra-diagram",
        description="Generate Mermaid architecture diagrams from azd template infrastructure.",
    )
    config_help = "YAML file overriding layout conventions (infra_dir, plan_id, use_mmdc, ...)."
    parser.add_argument("--config", type=Path, default=None, help=config_help)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    # Subcommands accept the same options; SUPPRESS keeps an unset subcommand
    # option from overwriting a value given before the subcommand.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=argparse.SUPPRESS, help=config_help)
    common.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def add_template(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "template",
            type=Path,
            nargs="?",
            default=Path.cwd(),
            help="Template directory (default: current directory)",
        )

    p_gen = sub.add_parser("generate", parents=[common], help="Print (or write) the Mermaid diagram")
    add_template(p_gen)
    p_gen.add_argument("--out", type=Path, default=None, help="Write a Markdown page here")
    p_gen.add_argument("--title", default="Architecture", help="Title for --out")
    p_gen.add_argument(
        "--strict",
        action="store_true",
        help="Fail on validation warnings (e.g., dangling dependencies). Errors always fail.",
    )
    p_gen.set_defaults(func=_cmd_generate)

    p_val = sub.add_parser("validate", parents=[common], help="Check the extracted resource graph")
    add_template(p_val)
    p_val.add_argument("--strict", action="store_true", help="Treat warnings as errors")
    p_val.set_defaults(func=_cmd_validate)

    p_render = sub.add_parser("render", parents=[common], help="Render the diagram to a PNG artifact")
    add_template(p_render)
    p_render.add_argument(
        "--out-dir", type=Path, default=None, help="Output directory (default: TEMPLATE/images)"
    )
    p_render.set_defaults(func=_cmd_render)

    p_ins = sub.add_parser("insert", parents=[common], help="Insert the diagram into README.md once")
    add_template(p_ins)
    p_ins.add_argument(
        "--no-render", action="store_true", help="Insert only the Mermaid source, no PNG"
    )
    p_ins.set_defaults(func=_cmd_insert)

    p_an = sub.add_parser("analyze", parents=[common], help="Summarise the template as JSON")
    add_template(p_an)
    p_an.set_defaults(func=_cmd_analyze)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args.config)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"error: invalid config: {e}", file=sys.stderr)
        raise SystemExit(2)

    raise SystemExit(args.func(args, cfg))


if __name__ == "__main__":
    main()

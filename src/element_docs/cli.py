"""
CLI commands for building and inspecting data-element documentation.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .config import MODEL_ENV_VAR, get_build_config
from .errors import ModelError
from .loader import load_model_file
from .renderer import PageBuilder

logger = logging.getLogger("element_docs")


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def cmd_build(args):
    """Resolve the model and write the HTML documentation tree."""
    setup_logging(args.verbose)
    config = get_build_config()
    if args.export_version:
        config.export_version = args.export_version
    if args.no_assets:
        config.copy_assets = False

    # Resolve before touching the output directory so a malformed model writes nothing
    try:
        model = load_model_file(Path(args.model), logger=logger, export_version=config.export_version)
    except (ModelError, OSError, json.JSONDecodeError) as e:
        print(f"✗ Failed to compile model {args.model}: {e}")
        return 1

    written = PageBuilder(model, Path(args.out_dir), config=config, logger=logger).generate_html()
    print(f"✓ Wrote {len(written)} pages to: {args.out_dir}")
    return 0


def cmd_inspect(args):
    """Print the resolved view of the model or of one element."""
    setup_logging(args.verbose)
    try:
        model = load_model_file(Path(args.model), logger=logger)
    except (ModelError, OSError, json.JSONDecodeError) as e:
        print(f"✗ Failed to compile model {args.model}: {e}")
        return 1

    if args.fqn:
        element = model.elements.get(args.fqn)
        if element is None:
            print(f"✗ Unknown element: {args.fqn}")
            return 1
        if args.json:
            print(json.dumps(element.to_dict(), indent=2))
            return 0
        print(f"{element.fqn} ({element.namespace_path})")
        chain = " <- ".join([element.fqn] + element.hierarchy)
        print(f"  hierarchy: {chain}")
        for field in element.merged_fields:
            marker = " " if field.declared_by == element.fqn else "^"
            print(f"  {marker} {field.name}: {field.type or '-'} [{field.card}] ({field.declared_by})")
        return 0

    if args.json:
        print(json.dumps(model.summary(), indent=2))
        return 0
    summary = model.summary()
    print(f"Project: {summary['project'] or '-'} {summary['version'] or ''}".rstrip())
    for namespace in model.namespaces.list():
        print(f"  {namespace.name} -> {namespace.path}/ ({len(namespace.elements)} elements)")
    print(f"Elements: {summary['elements']} ({summary['elements_with_hierarchy']} with ancestors)")
    return 0


def cmd_serve(args):
    """Serve the resolved model over HTTP."""
    setup_logging(args.verbose)
    from .app import get_repository
    from .run_server import main as run_server

    os.environ[MODEL_ENV_VAR] = str(Path(args.model).resolve())
    get_repository.cache_clear()
    try:
        get_repository()
    except (ModelError, OSError, json.JSONDecodeError) as e:
        print(f"✗ Failed to compile model {args.model}: {e}")
        return 1
    run_server(host=args.host, port=args.port)
    return 0


def build_parser():
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        description="Data element documentation compiler",
        prog="element-docs"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    build_parser_ = subparsers.add_parser(
        "build",
        help="Generate HTML documentation from a canonical JSON model"
    )
    build_parser_.add_argument("model", help="Path to the canonical JSON model")
    build_parser_.add_argument("out_dir", help="Output directory")
    build_parser_.add_argument(
        "--export-version",
        default=None,
        help="Version stamp written to every page"
    )
    build_parser_.add_argument(
        "--no-assets",
        action="store_true",
        help="Do not copy the stylesheet and index page"
    )
    build_parser_.set_defaults(func=cmd_build)

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show namespaces or the resolved view of one element"
    )
    inspect_parser.add_argument("model", help="Path to the canonical JSON model")
    inspect_parser.add_argument("--fqn", help="Element to show")
    inspect_parser.add_argument("--json", action="store_true", help="Emit JSON")
    inspect_parser.set_defaults(func=cmd_inspect)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the resolved model over HTTP"
    )
    serve_parser.add_argument("model", help="Path to the canonical JSON model")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

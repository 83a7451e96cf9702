"""CLI entry point: python -m pageforge build|dev|pages|render ..."""

from __future__ import annotations

import argparse
import logging
import sys

from pageforge.config import ConfigTree, SiteConfig, load_site_config


def _load_site(args: argparse.Namespace) -> SiteConfig:
    try:
        return load_site_config(args.root, args.config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _load_tree(site: SiteConfig) -> ConfigTree:
    try:
        return ConfigTree.from_file(site.variables_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_build(args: argparse.Namespace) -> None:
    # Lazy import so --help stays fast
    from pageforge.build.bundlers import get_bundler
    from pageforge.orchestrator import run_build

    site = _load_site(args).with_overrides(
        base_url=args.base_url,
        bundler=args.bundler,
        out_dir=args.out,
    )
    tree = _load_tree(site)

    try:
        bundler = get_bundler(site.bundler)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Building {site.root}")
    print(f"Bundler:  {bundler.name()}")
    print(f"Base URL: {site.base_url or '(relative)'}")
    print()

    try:
        result = run_build(site, tree, bundler)
    except Exception as e:
        print(f"\nBuild failed: {e}", file=sys.stderr)
        sys.exit(1)

    print("=" * 60)
    print("BUILD RESULT")
    print("=" * 60)
    for path in result.outputs:
        print(f"  {path}")
    print(f"\n{len(result.outputs)} page(s) in {result.elapsed_s:.2f}s")
    print("=" * 60)


def cmd_dev(args: argparse.Namespace) -> None:
    from pageforge.dev.server import run_dev_server

    site = _load_site(args)
    tree = _load_tree(site)
    run_dev_server(site, tree, host=args.host, port=args.port, watch=not args.no_watch)


def cmd_pages(args: argparse.Namespace) -> None:
    from rich.console import Console
    from rich.table import Table

    from pageforge.registry import discover_pages, route_path

    site = _load_site(args)
    pages = discover_pages(site)
    console = Console()
    if not pages:
        console.print(f"No pages found under {site.pages_root}")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ROUTE")
    table.add_column("PATH")
    table.add_column("FRAGMENT")
    table.add_column("SCRIPT ENTRY")
    for route, page in pages.items():
        table.add_row(
            route,
            route_path(route, site),
            str(page.fragment_path.relative_to(site.root)),
            str(page.script_entry.relative_to(site.root)) if page.script_entry else "[dim]-[/dim]",
        )
    console.print(table)


def cmd_render(args: argparse.Namespace) -> None:
    from pageforge.assembler import assemble_page_file
    from pageforge.registry import discover_pages

    site = _load_site(args)
    tree = _load_tree(site)
    pages = discover_pages(site)
    page = pages.get(args.route)
    if page is None:
        print(f"Unknown route: {args.route!r}. Available: {sorted(pages)}", file=sys.stderr)
        sys.exit(1)
    sys.stdout.write(assemble_page_file(page, site, tree, strict_layout=args.strict))


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="pageforge",
        description="Static page assembler and build tool",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--root", default=".", help="Project root (default: .)")
    parser.add_argument("--config", default=None,
                        help="Site config YAML (default: <root>/pageforge.yaml if present)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # -- build --
    p_build = subparsers.add_parser("build", help="Build every page for production")
    p_build.add_argument("--base-url", default=None,
                         help="Deployment base URL for asset references (overrides PROD_URL)")
    p_build.add_argument("--bundler", default=None, help="Bundler: copy, command (default: copy)")
    p_build.add_argument("--out", default=None, help="Output directory (default: dist)")
    p_build.set_defaults(func=cmd_build)

    # -- dev --
    p_dev = subparsers.add_parser("dev", help="Run the development server")
    p_dev.add_argument("--host", default=None)
    p_dev.add_argument("--port", type=int, default=None)
    p_dev.add_argument("--no-watch", action="store_true", default=False,
                       help="Disable file watching and live reload")
    p_dev.set_defaults(func=cmd_dev)

    # -- pages --
    p_pages = subparsers.add_parser("pages", help="List discovered pages")
    p_pages.set_defaults(func=cmd_pages)

    # -- render --
    p_render = subparsers.add_parser("render", help="Print the assembled HTML of one page")
    p_render.add_argument("route", help="Route key (e.g. index, about)")
    p_render.add_argument("--strict", action="store_true", default=False,
                          help="Fail if the layout shell is missing")
    p_render.set_defaults(func=cmd_render)

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    # Silence per-request logging unless --verbose
    if not args.verbose:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    args.func(args)


if __name__ == "__main__":
    main()

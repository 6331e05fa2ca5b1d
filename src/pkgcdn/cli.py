#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pkgcdn command line entry
Run the server, or inspect what it would serve for a local directory
"""
import argparse
import asyncio
import json
import os
import sys

from pkgcdn.config import configure_logging, get_settings


def cmd_serve(args):
    """Run the HTTP server"""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "pkgcdn.server:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_meta(args):
    """Print the metadata tree of a directory or file"""
    from pkgcdn.models import FileStats
    from pkgcdn.utils.metadata import get_metadata

    path = os.path.abspath(args.path)
    stats = FileStats.from_stat(os.stat(path))
    if stats.is_directory:
        base_dir, filename = path, "/"
    else:
        base_dir, filename = os.path.dirname(path), "/" + os.path.basename(path)

    metadata = asyncio.run(get_metadata(base_dir, filename, stats, args.depth))
    print(json.dumps(metadata.model_dump(exclude_none=True), indent=2))
    return 0


def cmd_module(args):
    """Print a JavaScript file with its bare imports rewritten"""
    from pkgcdn.models import merge_dependencies
    from pkgcdn.resolver import read_package_config
    from pkgcdn.utils.modules import rewrite_bare_module_identifiers

    file = os.path.abspath(args.file)
    if args.package_json:
        package_config = read_package_config(os.path.dirname(os.path.abspath(args.package_json)))
    else:
        package_config = read_package_config(os.path.dirname(file))

    dependencies = merge_dependencies(package_config)

    result = asyncio.run(rewrite_bare_module_identifiers(file, dependencies, args.origin or get_settings().origin))
    if not result.ok:
        print(f"{result.error.name}: {result.error.message}", file=sys.stderr)
        if result.error.code_frame:
            print(f"\n{result.error.code_frame}", file=sys.stderr)
        return 1

    sys.stdout.write(result.code)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='pkgcdn - serve extracted packages over HTTP',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pkgcdn serve --port 8080
  pkgcdn meta ./packages/lodash@4.17.21 --depth 2
  pkgcdn module ./packages/preact@10.0.0/dist/preact.module.js
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP server')
    serve_parser.add_argument('--host', help='Bind address (default: PKGCDN_HOST)')
    serve_parser.add_argument('--port', type=int, help='Bind port (default: PKGCDN_PORT)')
    serve_parser.set_defaults(func=cmd_serve)

    meta_parser = subparsers.add_parser('meta', help='Print metadata JSON for a path')
    meta_parser.add_argument('path', help='Directory or file')
    meta_parser.add_argument('--depth', type=int, default=get_settings().maximum_depth, help='Maximum recursion depth')
    meta_parser.set_defaults(func=cmd_meta)

    module_parser = subparsers.add_parser('module', help='Print a rewritten ES module')
    module_parser.add_argument('file', help='JavaScript file')
    module_parser.add_argument('--package-json', help='package.json holding the dependencies (default: next to file)')
    module_parser.add_argument('--origin', help='CDN origin for rewritten URLs (default: PKGCDN_ORIGIN)')
    module_parser.set_defaults(func=cmd_module)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())

"""Argument parsing functionality for nugetfeed."""

import argparse

from constants import Constants


def _add_query_flags(parser):
    parser.add_argument("--prerelease",
                        dest="INCLUDE_PRERELEASE",
                        help="Include prerelease versions (alpha, beta, etc).",
                        action="store_true")
    parser.add_argument("--all-versions",
                        dest="INCLUDE_ALL_VERSIONS",
                        help="Include older versions, not only the latest one.",
                        action="store_true")


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="nugetfeed",
        description="Query NuGet package sources and compute available updates for packages.config",
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"YAML config file with package sources (default: ${Constants.ENV_CONFIG} or {Constants.CONFIG_FILE})",
                        action="store",
                        type=str)
    parser.add_argument("-m", "--manifest",
                        dest="MANIFEST",
                        help="Path to the packages.config manifest",
                        action="store",
                        type=str,
                        default=Constants.PACKAGES_CONFIG_FILE)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--json",
                        dest="JSON",
                        help="Print results as a JSON array.",
                        action="store_true")

    sub = parser.add_subparsers(dest="COMMAND", required=True)

    updates = sub.add_parser("updates", help="List available updates for the manifest")
    _add_query_flags(updates)

    search = sub.add_parser("search", help="Search the enabled sources")
    search.add_argument("TERM", nargs="?", default="", help="Search term (default: everything)")
    search.add_argument("--top",
                        dest="TOP",
                        type=int,
                        default=Constants.DEFAULT_SEARCH_PAGE_SIZE,
                        help="Number of packages to fetch per source")
    search.add_argument("--skip", dest="SKIP", type=int, default=0, help="Number of packages to skip")
    _add_query_flags(search)

    find = sub.add_parser("find", help="Find a package by id and version or range")
    find.add_argument("ID", help="Package id")
    find_group = find.add_mutually_exclusive_group(required=True)
    find_group.add_argument("-v", "--version", dest="VERSION", help="Exact version")
    find_group.add_argument("-r", "--range", dest="RANGE", help="Version range, e.g. [1.0,2.0)")
    find.add_argument("--prerelease",
                      dest="INCLUDE_PRERELEASE",
                      help="Include prerelease versions when matching a range.",
                      action="store_true")

    add = sub.add_parser("add", help="Add a package to the manifest")
    add.add_argument("ID", help="Package id")
    add.add_argument("VERSION", help="Package version")

    remove = sub.add_parser("remove", help="Remove a package from the manifest")
    remove.add_argument("ID", help="Package id")

    return parser.parse_args(argv)

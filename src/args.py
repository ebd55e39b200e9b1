"""Argument parsing functionality for specfetch."""

import argparse


def _add_common(parser):
    parser.add_argument("-s", "--source",
                        dest="SOURCES",
                        help="Remote source URL (repeatable); overrides configured sources",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)


def build_parser():
    """Build the specfetch argument parser."""
    parser = argparse.ArgumentParser(
        prog="specfetch",
        description="specfetch - query and cache remote package spec indexes",
        add_help=True,
    )
    sub = parser.add_subparsers(dest="COMMAND", required=True)

    search = sub.add_parser("search", help="Find specs matching a dependency")
    search.add_argument("NAME", help="Package name")
    search.add_argument("-r", "--requirement",
                        dest="REQUIREMENT",
                        help="Version requirement, e.g. '>= 1.0, < 2' or '~> 1.2'",
                        action="store",
                        type=str,
                        default=None)
    search.add_argument("--pre",
                        dest="PRERELEASE",
                        help="Include prerelease versions",
                        action="store_true")
    search.add_argument("--latest",
                        dest="LATEST",
                        help="Only consider the latest version of each package",
                        action="store_true")
    search.add_argument("--all-platforms",
                        dest="ALL_PLATFORMS",
                        help="Do not filter by platform",
                        action="store_true")
    _add_common(search)

    listing = sub.add_parser("list", help="List available specs")
    group = listing.add_mutually_exclusive_group()
    group.add_argument("-a", "--all",
                       dest="ALL",
                       help="All released versions instead of only the latest",
                       action="store_true")
    group.add_argument("--pre",
                       dest="PRERELEASE",
                       help="Prerelease versions only",
                       action="store_true")
    _add_common(listing)

    suggest = sub.add_parser("suggest", help="Suggest names close to NAME")
    suggest.add_argument("NAME", help="Misspelled package name")
    _add_common(suggest)

    fetch = sub.add_parser("fetch", help="Fetch one full spec descriptor")
    fetch.add_argument("NAME", help="Package name")
    fetch.add_argument("VERSION", help="Exact version")
    fetch.add_argument("PLATFORM", nargs="?", default=None, help="Platform (default: generic)")
    _add_common(fetch)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)

"""specfetch - query and cache remote package spec indexes.

Returns:
    int: Exit code
"""
import logging
import sys

from constants import ExitCodes, Constants, load_config
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from spec_index import CorruptCacheError, Dependency, FetchError, NameTuple, SpecFetcher
from spec_index.models import parse_version

logger = logging.getLogger(__name__)


def _format_tuple(spec):
    """Render ``name (version[ platform])``."""
    platform = f" {spec.platform}" if spec.platform and spec.platform not in Constants.GENERIC_PLATFORMS else ""
    return f"{spec.name} ({spec.version}{platform})"


def run_search(fetcher, args, out=None):
    """Print every matching tuple with its source; warn about platform mismatches."""
    dependency = Dependency(
        args.NAME,
        args.REQUIREMENT,
        prerelease=args.PRERELEASE,
        latest_version=True if args.LATEST else None,
    )
    tuples, errors = fetcher.search_for_dependency(dependency, not args.ALL_PLATFORMS)
    for mismatch in errors:
        logger.warning(mismatch.wordy)
    if not tuples:
        suggestions = fetcher.suggest_gems_from_name(args.NAME)
        if suggestions:
            logger.warning("Could not find %s. Did you mean: %s", args.NAME, ", ".join(suggestions))
        return ExitCodes.NOT_FOUND
    for spec, source in tuples:
        print(f"{_format_tuple(spec)} from {source}", file=out)
    return ExitCodes.SUCCESS


def run_list(fetcher, args, out=None):
    for source, specs in fetcher.list(all=args.ALL, prerelease=args.PRERELEASE).items():
        print(f"*** {source} ***", file=out)
        for spec in specs:
            print(_format_tuple(spec), file=out)
    return ExitCodes.SUCCESS


def run_suggest(fetcher, args, out=None):
    suggestions = fetcher.suggest_gems_from_name(args.NAME)
    if not suggestions:
        return ExitCodes.NOT_FOUND
    for name in suggestions:
        print(name, file=out)
    return ExitCodes.SUCCESS


def run_fetch(fetcher, args, out=None):
    """Fetch one descriptor from the first source that serves it."""
    version = parse_version(args.VERSION)
    if version is None:
        logger.error("Invalid version: %s", args.VERSION)
        return ExitCodes.FILE_ERROR
    spec = NameTuple(args.NAME, version, args.PLATFORM)
    last_error = None
    for source in fetcher.sources:
        try:
            descriptor = fetcher.fetch_spec(spec, source)
        except FetchError as exc:
            last_error = exc
            continue
        print(fetcher.codec.encode(descriptor).decode("utf-8"), file=out)
        return ExitCodes.SUCCESS
    if last_error is not None:
        raise last_error
    return ExitCodes.NOT_FOUND


COMMANDS = {
    "search": run_search,
    "list": run_list,
    "suggest": run_suggest,
    "fetch": run_fetch,
}


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)
    load_config(args.CONFIG)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    fetcher = SpecFetcher(sources=args.SOURCES or None)
    try:
        code = COMMANDS[args.COMMAND](fetcher, args)
    except FetchError as exc:
        logger.error("Unable to reach source: %s", exc)
        code = ExitCodes.CONNECTION_ERROR
    except CorruptCacheError as exc:
        logger.error("%s", exc)
        code = ExitCodes.FILE_ERROR
    except ValueError as exc:
        logger.error("%s", exc)
        code = ExitCodes.FILE_ERROR
    sys.exit(code.value)


if __name__ == "__main__":
    main()

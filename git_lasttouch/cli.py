"""Command-line interface for git-lasttouch."""
import argparse
import csv
import json
import logging
import sys
from dataclasses import asdict
from typing import IO, List, Optional, Tuple

import colorama
from colorama import Fore, Style

from . import __version__
from .attribution import Attribution, Resolution
from .errors import IncompleteResolutionError, LastTouchError
from .history import DEFAULT_REF, find_last_commits


def should_style(stream: IO, mode: str = "auto") -> bool:
    """Decide whether output written to `stream` gets terminal colors.

    Args:
        stream: Output stream
        mode: "always", "never", or "auto" (style only interactive terminals)
    """
    if mode == "always":
        return True
    if mode == "never":
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def printable(path: str) -> str:
    """Replace bytes git gave us that are not valid UTF-8 so the path can be printed."""
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def format_attribution(attribution: Attribution, styled: bool = False) -> str:
    """Format one attribution as a single output line.

    Args:
        attribution: Resolved path and commit
        styled: Color the commit, date and author

    Returns:
        "<hash>  <date>  <author>  <path>  <message>"
    """
    short = attribution.commit[:8]
    day = attribution.date[:10]
    author = attribution.author
    if styled:
        short = f"{Fore.YELLOW}{short}{Style.RESET_ALL}"
        day = f"{Fore.GREEN}{day}{Style.RESET_ALL}"
        author = f"{Fore.CYAN}{author}{Style.RESET_ALL}"
    return f"{short}  {day}  {author}  {printable(attribution.path)}  {attribution.message}"


def sort_attributions(attributions: List[Attribution], order: str) -> List[Attribution]:
    """Return attributions in resolution order ("commit") or by path ("path")."""
    if order == "path":
        return sorted(attributions, key=lambda a: a.path)
    return list(attributions)


def print_lines(attributions: List[Attribution], styled: bool = False) -> None:
    for attribution in attributions:
        print(format_attribution(attribution, styled))


def print_json_output(resolution: Resolution, attributions: List[Attribution]) -> None:
    print(json.dumps({
        "attributions": [asdict(a) for a in attributions],
        "unresolved": sorted(resolution.unresolved),
        "commits_read": resolution.records_read,
    }, indent=2))


def print_csv_output(attributions: List[Attribution]) -> None:
    writer = csv.writer(sys.stdout)
    writer.writerow(["Path", "Commit", "Author", "Date", "Message"])
    for a in attributions:
        writer.writerow([printable(a.path), a.commit, a.author, a.date, a.message])


def print_progress(commits_read: int, remaining: int) -> None:
    print(f"  Progress: {commits_read} commits read, {remaining} paths left...",
          end="\r", file=sys.stderr)


def report_unresolved(error: IncompleteResolutionError, styled: bool = False) -> None:
    """Print the unresolved paths to stderr as a hard failure."""
    if styled:
        print(f"{Fore.RED}Error: {error}{Style.RESET_ALL}", file=sys.stderr)
    else:
        print(f"Error: {error}", file=sys.stderr)


def parse_exclude_patterns(pattern_string: Optional[str]) -> Optional[List[str]]:
    """Parse comma-separated exclusion patterns.

    Returns:
        List of patterns or None if empty
    """
    if not pattern_string:
        return None
    patterns = [p.strip() for p in pattern_string.split(",") if p.strip()]
    return patterns if patterns else None


def split_arguments(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split argv at the first "--" into options and path filters."""
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-lasttouch",
        description="Show the commit that last touched each file in a tree.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  git lasttouch
  git lasttouch v1.0.0
  git lasttouch main -- src/
  git lasttouch --sort path --exclude "*.lock,*.min.js"
  git lasttouch HEAD~10 --json -- docs/ README.md"""
    )
    parser.add_argument("ref", nargs="?", default=DEFAULT_REF,
                        help=f"Commit, branch, or tag to inspect (default: {DEFAULT_REF})")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--csv", action="store_true", help="Output as CSV")
    parser.add_argument("--sort", choices=["commit", "path"], default="commit",
                        help="Order by most recent commit first (default) or by path")
    parser.add_argument(
        "--exclude",
        type=str,
        help="Comma-separated patterns to exclude (e.g., '*.lock,vendor/*')"
    )
    parser.add_argument("--color", choices=["auto", "always", "never"], default="auto",
                        help="Colorize output (default: auto, only on a terminal)")
    parser.add_argument("--progress", action="store_true", help="Show progress while reading history")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug information to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the git-lasttouch CLI.

    Exits with code 1 on error or when some paths cannot be attributed,
    130 on keyboard interrupt.
    """
    if argv is None:
        argv = sys.argv[1:]
    options, filters = split_arguments(argv)
    args = build_parser().parse_args(options)

    configure_logging(args.verbose)
    styled = should_style(sys.stdout, args.color) and not (args.json or args.csv)
    err_styled = should_style(sys.stderr, args.color)
    colorama.just_fix_windows_console()

    try:
        resolution = find_last_commits(
            ref=args.ref,
            filters=filters,
            exclude_patterns=parse_exclude_patterns(args.exclude),
            on_progress=print_progress if args.progress else None,
        )
        if args.progress:
            print(file=sys.stderr)

        attributions = sort_attributions(resolution.attributions, args.sort)
        if args.json:
            print_json_output(resolution, attributions)
        elif args.csv:
            print_csv_output(attributions)
        else:
            print_lines(attributions, styled)

        resolution.raise_if_incomplete()

    except IncompleteResolutionError as e:
        report_unresolved(e, err_styled)
        sys.exit(1)
    except LastTouchError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()

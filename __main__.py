"""CLI entry point for settera development tasks.

Usage:
    python . test [--unit|--integration|--all] [pytest args]
"""

import subprocess
import sys

from dotenv import load_dotenv

from settera.config import get_log_level
from settera.core.log import get_logger, setup_logging

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . test                # Run all tests
        python . test --unit         # Run only unit tests
        python . test --all          # Run all tests explicitly
        python . test -v             # Run with verbose output
        python . test -k "search"    # Run tests matching pattern

    Test Tiers:
        unit        - Fast tests with no I/O or external dependencies
        integration - Tests touching the file system or environment
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration"],
        "--all": [],  # No filter, run everything
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []

    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


def show_help() -> None:
    print("settera - settings schema engine\n")
    print("Commands:")
    print("  test       Run pytest with tier options (--unit, --integration, --all)")
    print("\nExamples:")
    print("  python . test --unit")
    print("  python . test -k visibility -v")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    commands = {
        "test": lambda: cmd_test(rest_args),
    }

    if command in commands:
        setup_logging(get_log_level())
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())

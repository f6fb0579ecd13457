"""
Command-line interface for the league scheduler.
"""

import argparse
import json
import logging
import sys

import pydantic
import yaml

from .config import load_problem_spec
from .engine import solve, validate_result
from .export import write_excel, write_json
from .validation import SchedulerValidationError


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="League Scheduler - assign games to field slots and umpires"
    )

    parser.add_argument(
        "--spec",
        required=True,
        help="Path to YAML or JSON problem spec"
    )

    parser.add_argument(
        "--out",
        required=True,
        help="Path to output JSON result"
    )

    parser.add_argument(
        "--excel",
        help="Path to output Excel file (optional)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        print("Loading problem spec...")
        spec = load_problem_spec(args.spec)
        print(f"Loaded {len(spec.games)} games, {len(spec.field_slots)} field slots, "
              f"{len(spec.umpires)} umpires")

        print("Running scheduler...")
        result = solve(spec)

        violations = validate_result(result, spec)
        if violations['errors']:
            print("ERRORS found in result:")
            for error in violations['errors']:
                print(f"  - {error}")

        print(f"Writing result to {args.out}...")
        write_json(result, args.out)

        if args.excel:
            print(f"Exporting schedule to {args.excel}...")
            write_excel(result, spec, args.excel)

        print("\n" + "=" * 50)
        print(f"SCHEDULING {result.status.value.upper()}")
        print("=" * 50)

        metrics = result.metrics
        print(f"Run: {result.run_id}")
        print(f"Games scheduled: {metrics.scheduled_games} of {metrics.total_games}")
        for unscheduled in result.unscheduled:
            print(f"  - {unscheduled.game_id}: {unscheduled.reason.value}")

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"ERROR: Invalid YAML problem spec: {e}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid JSON problem spec: {e}")
        sys.exit(1)
    except pydantic.ValidationError as e:
        print(f"ERROR: Malformed problem spec: {e}")
        sys.exit(1)
    except SchedulerValidationError as e:
        print(f"ERROR: Invalid problem spec: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
CLI commands for working with B2MML production schedule messages.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from .errors import InvalidMessageError
from .models import HierarchyScope, IdentifierType, QuantityValue
from .requirements import MaterialRequirement, SegmentRequirement
from .schedule import ProcessProductionSchedule, ProductionRequest, ProductionSchedule
from .time_instant import TimeInstant

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _read_message(path):
    return ProcessProductionSchedule.from_xml_bytes(Path(path).read_bytes())


def cmd_inspect(args):
    """Decode a message and print it as JSON."""
    setup_logging(args.verbose)

    try:
        message = _read_message(args.file)
    except (OSError, InvalidMessageError) as e:
        print(f"✗ Failed to read {args.file}: {e}")
        return 1

    print(json.dumps(message.to_dict(), indent=2))
    return 0


def cmd_normalise(args):
    """Decode a message and encode it again."""
    setup_logging(args.verbose)

    try:
        data = _read_message(args.file).to_xml_bytes()
        if args.output:
            Path(args.output).write_bytes(data)
            print(f"✓ Wrote normalised message to: {args.output}")
        else:
            sys.stdout.write(data.decode("utf-8") + "\n")
        return 0
    except (OSError, InvalidMessageError) as e:
        print(f"✗ Failed to normalise {args.file}: {e}")
        return 1


def build_sample_message():
    """Build a small message with one request, segment and material."""
    material = MaterialRequirement(material_definition_ids=[IdentifierType("slag")])
    quantity = QuantityValue.from_double(12.2)
    quantity.unit_of_measure = "t"
    material.quantities.append(quantity)

    segment = SegmentRequirement(
        earliest_start_time=TimeInstant(datetime(2019, 5, 9, 13, 36, 2, tzinfo=timezone.utc)),
        latest_end_time=TimeInstant(datetime(2019, 5, 9, 13, 37, 2, tzinfo=timezone.utc)),
        material_requirements=[material],
    )
    request = ProductionRequest(
        identifier=IdentifierType("some-id"),
        hierarchy_scope=HierarchyScope(IdentifierType("psc3")),
        segment_requirements=[segment],
    )
    return ProcessProductionSchedule(
        production_schedules=[ProductionSchedule(production_requests=[request])]
    )


def cmd_selftest(args):
    """Encode and decode a sample message."""
    setup_logging(args.verbose)

    try:
        data = build_sample_message().to_xml_bytes()
        decoded = ProcessProductionSchedule.from_xml_bytes(data)
    except InvalidMessageError as e:
        print(f"✗ Self test failed: {e}")
        return 1

    request = next(decoded.iter_requests())
    logger.debug("Self test message was %d bytes", len(data))
    print(f"✓ Round trip OK, first request: {request.identifier.value}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="B2MML production schedule CLI",
        prog="b2mml-schedule"
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

    # Inspect command
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Decode a ProcessProductionSchedule message and print it as JSON"
    )
    inspect_parser.add_argument("file", help="Path to the XML message")
    inspect_parser.set_defaults(func=cmd_inspect)

    # Normalise command
    normalise_parser = subparsers.add_parser(
        "normalise",
        help="Re-encode a message with UTC times and canonical layout"
    )
    normalise_parser.add_argument("file", help="Path to the XML message")
    normalise_parser.add_argument(
        "-o", "--output",
        help="Write the result to this file instead of stdout"
    )
    normalise_parser.set_defaults(func=cmd_normalise)

    # Selftest command
    selftest_parser = subparsers.add_parser(
        "selftest",
        help="Encode and decode a built-in sample message"
    )
    selftest_parser.set_defaults(func=cmd_selftest)

    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

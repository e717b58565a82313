#!/usr/bin/env python3
"""
Health Sample Importer CLI

Lists the importable record types in an Apple Health export and writes
synthetic samples of a selected type for the previous days.

Usage:
    health-import survey <export.xml|export.zip> [--all]
    health-import generate <type> [--days N] [--seed S] [--anchor ISO] [--output FILE | --store DIR]
    health-import import <export> <type> [same options as generate]
"""
import argparse
import sys
from datetime import datetime

from dotenv import load_dotenv

from health_import.config import Config
from health_import.errors import HealthImportError
from health_import.importer import ImportSession
from health_import.sink import LocalHealthStore, XmlExportSink
from health_import.survey import RecordTypeSurveyor, summarize_record_types
from health_import.zip_handler import load_export_bytes


def parse_anchor(value):
    """Parse an ISO 8601 anchor; naive values are taken as local time"""
    try:
        anchor = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid anchor '{value}'. Use ISO format, e.g. 2024-01-31T08:00:00")
    if anchor.tzinfo is None:
        anchor = anchor.astimezone()
    return anchor


def make_sink(args, config):
    if args.output:
        return XmlExportSink(args.output, source_name=config.source_name)
    return LocalHealthStore(args.store or config.store_dir)


def cmd_survey(args, config):
    surveyor = RecordTypeSurveyor(config.catalog)
    data = load_export_bytes(args.export)

    if args.all:
        summary = summarize_record_types(surveyor.scan(data))
        print(f"DATA TYPES FOUND ({summary['total_record_types']} unique types, {summary['total_records']:,} records):")
        for category, types in summary['categories'].items():
            print(f"\n{category}:")
            for record_type in types:
                marker = "*" if record_type in surveyor.catalog else " "
                print(f" {marker} {record_type} ({summary['record_counts'][record_type]:,} records)")
        return 0

    available = surveyor.survey(data)
    if not available:
        print("No importable data types found.")
        return 0
    for record_type in available:
        print(f"{record_type}\t{surveyor.catalog.label(record_type)}")
    return 0


def cmd_generate(args, config):
    generator = config.make_generator(rng=args.seed)
    batch = generator.generate(args.type, window_days=args.days, anchor=args.anchor)
    ack = make_sink(args, config).submit(batch)
    print(f"Generated {ack.sample_count} samples of {config.catalog.label(args.type)} -> {ack.destination}")
    return 0


def cmd_import(args, config):
    session = ImportSession(config.catalog, generator=config.make_generator(rng=args.seed))
    session.select_file(args.export)
    session.analyze()
    session.select_type(args.type)
    session.generate(window_days=args.days, anchor=args.anchor)
    ack = session.submit(make_sink(args, config))
    print(f"Data for {session.labels()[args.type]} has been successfully imported. Number of data points: {ack.sample_count} -> {ack.destination}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='health-import',
        description='Survey Apple Health exports and import synthetic samples'
    )
    parser.add_argument('--config', help='Path to config.json (default: project config.json)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    survey = subparsers.add_parser('survey', help='List importable record types in an export')
    survey.add_argument('export', help='Path to export.xml or export.zip')
    survey.add_argument('--all', action='store_true', help='List every record type with counts')
    survey.set_defaults(func=cmd_survey)

    generation = argparse.ArgumentParser(add_help=False)
    generation.add_argument('--days', type=int, default=None, help='Number of trailing days (default: config, 90)')
    generation.add_argument('--seed', type=int, default=None, help='Random seed for reproducible output')
    generation.add_argument('--anchor', type=parse_anchor, default=None, help='Most recent sample time (default: now)')
    destination = generation.add_mutually_exclusive_group()
    destination.add_argument('-o', '--output', help='Write samples as export-style XML to this file')
    destination.add_argument('--store', help='Local sample store directory (default: config paths.store_dir)')

    generate = subparsers.add_parser('generate', parents=[generation], help='Generate samples for a type')
    generate.add_argument('type', help='Record type identifier, e.g. HKQuantityTypeIdentifierStepCount')
    generate.set_defaults(func=cmd_generate)

    run = subparsers.add_parser('import', parents=[generation], help='Survey an export, then generate samples for a type found in it')
    run.add_argument('export', help='Path to export.xml or export.zip')
    run.add_argument('type', help='Record type identifier')
    run.set_defaults(func=cmd_import)

    return parser


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = Config(args.config) if args.config else Config()
        return args.func(args, config)
    except (HealthImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

"""
AD Site Finder - command line entry point.

Examples:
    python main.py --count 500 --top 5
    python main.py --filter max_slope=8 --filter minArea=5 --format csv --output sites.csv
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Dict, Tuple

from loaders.reference import ReferenceDataLoader
from siting.engine import AnalysisOptions, SiteFinder
from siting.errors import SiteFinderError
from siting.scoring import suitability_band
from siting.settings import EngineSettings

log = logging.getLogger(__name__)


def parse_filter(pair: str) -> Tuple[str, float]:
    """'max_slope=8' -> ('max_slope', 8.0)"""
    key, sep, value = pair.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Filter must look like key=value, got '{pair}'")
    try:
        return key.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Filter value must be a number, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find and rank candidate sites for anaerobic digestion plants")
    parser.add_argument("--count", type=int, help="Number of candidate sites to generate")
    parser.add_argument("--min-area", type=float, help="Minimum site area (hectares)")
    parser.add_argument("--max-area", type=float, help="Maximum site area (hectares)")
    parser.add_argument("--filter", action="append", default=[], type=parse_filter, metavar="KEY=VALUE",
                        help="User filter, e.g. max_slope=8 (repeatable)")
    parser.add_argument("--top", type=int, default=10, help="How many ranked sites to print")
    parser.add_argument("--format", choices=["json", "csv", "geojson"], default="json",
                        help="Export format used with --output")
    parser.add_argument("--output", help="Write the exported result to this file")
    parser.add_argument("--save-filter", metavar="NAME", help="Save the given filters as a named preset")
    parser.add_argument("--settings", help="JSON settings file")
    parser.add_argument("--plants", help="AD plant locations (file path or URL)")
    parser.add_argument("--boundaries", help="Boundary FeatureCollection (file path or URL)")
    parser.add_argument("--no-worker", action="store_true", help="Run the analysis on the main thread")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for the background worker")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    settings = EngineSettings.load(args.settings)
    if args.no_worker:
        settings.use_worker = False
    if args.timeout is not None:
        settings.worker_timeout_seconds = args.timeout

    filters = dict(args.filter)
    loader = ReferenceDataLoader(plants_source=args.plants, boundaries_source=args.boundaries)
    finder = SiteFinder(loader, settings=settings)

    try:
        return run(finder, args, filters)
    finally:
        finder.shutdown()


def run(finder: SiteFinder, args: argparse.Namespace, filters: Dict[str, float]) -> int:
    try:
        result = finder.find_suitable_sites(AnalysisOptions(
            filters=filters,
            min_area=args.min_area,
            max_area=args.max_area,
            target_count=args.count,
        ))
    except SiteFinderError as e:
        log.error(f"Analysis failed: {e}")
        return 1

    print(f"\n=== AD SITE FINDER ({result.processing_method.value}) ===")
    print(f"Analyzed {result.total_analyzed} candidates, {result.suitable_sites} suitable\n")
    for site in result.results[:args.top]:
        p = site.properties
        print(
            f"#{site.rank:<3} {site.id:<28} ({site.latitude:.4f}, {site.longitude:.4f}) "
            f"score {site.score:.2f} [{suitability_band(site.score)}] "
            f"{p.area:.1f} ha, {p.soil_type}, {p.land_use}"
        )

    stats = result.score_statistics()
    if stats["count"]:
        print(f"\nMean score {stats['mean']:.2f}, bands: {stats['bands']}")

    for rec in finder.get_filter_recommendations():
        low, high = rec.suggested_range
        print(f"  - {rec.message} (try {low:.0f}-{high:.0f})")

    if args.output:
        Path(args.output).write_text(finder.export_results(args.format))
        print(f"\nWrote {args.format} export to {args.output}")

    if args.save_filter:
        finder.save_filter(args.save_filter, filters)
        print(f"Saved filter preset '{args.save_filter}'")

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Resolve a coordinate and print the resulting place hierarchy.

Usage (from `backend/`):
    python -m scripts.show_location 51.0504 13.7373 --verbose

Reads the spatial store configured by PLACES_DATABASE_URL.
"""

from __future__ import annotations

import argparse
import json
import logging

from domain.models import NotFound, ResolveOptions, check_coordinate
from repositories.places import SqlSpatialStore
from services.place_resolver import PlaceResolver
from services.translator import CountryTranslator

logger = logging.getLogger("show_location")


def main() -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(description="Show district, city, state, country and POIs for a coordinate.")
    parser.add_argument("latitude", type=float)
    parser.add_argument("longitude", type=float)
    parser.add_argument("--locale", default=None, help="Country name locale (defaults to RESOLVER_LOCALE).")
    parser.add_argument("--timeout", type=float, default=None, help="Overall timeout in seconds.")
    parser.add_argument("--debug", action="store_true", help="Log every store query with its duration.")
    parser.add_argument("--verbose", action="store_true", help="Log the candidate table and hierarchy.")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")
    args = parser.parse_args()
    try:
        check_coordinate(args.latitude, args.longitude)
    except ValueError as exc:
        parser.error(str(exc))

    resolver = PlaceResolver(SqlSpatialStore(), translator=CountryTranslator(locale=args.locale))
    options = ResolveOptions(debug=args.debug, verbose=args.verbose, timeout=args.timeout)
    result = resolver.resolve(args.latitude, args.longitude, options)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0 if not isinstance(result, NotFound) else 1

    if isinstance(result, NotFound):
        logger.info("No place found near %.5f, %.5f", args.latitude, args.longitude)
        return 1

    logger.info("Place:     %s (%s)", result.place.name, result.place.feature_code)
    logger.info("Full name: %s", result.full_name)
    logger.info("District:  %s", result.district.name if result.district else "-")
    logger.info("City:      %s", result.city.name if result.city else "-")
    logger.info("State:     %s", result.state.name if result.state else "-")
    logger.info("Country:   %s (%s)", result.country, result.country_code)
    for label, pois in (
        ("Park", result.parks),
        ("Forest", result.forests),
        ("Mountain", result.mountains),
        ("Spot", result.spots),
    ):
        if pois:
            logger.info("%-10s %s (%.1f m)", label + ":", pois[0].name, pois[0].distance_meters or 0.0)
    logger.info("City or rural: %s", "city" if result.is_city else "rural")
    logger.info("Time: %.3f s", result.elapsed or 0.0)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

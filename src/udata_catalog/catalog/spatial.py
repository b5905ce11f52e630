"""Map a free-text spatial coverage onto the catalog's zone taxonomy."""

import concurrent.futures

from udata_catalog.catalog.base import SpatialResolution
from udata_catalog.catalog.client import UdataClient
from udata_catalog.errors import CatalogError
from udata_catalog.helpers.log import PluginLog
from udata_catalog.helpers.matching import normalize_name, pick_zone
from udata_catalog.settings import SPATIAL_MAX_WORKERS

# Granularity reported when resolved zones sit at different levels
MIXED_GRANULARITY = "other"


def split_places(text: str | None) -> list[str]:
    """``"Corse; Martinique;; "`` → ``["Corse", "Martinique"]``."""
    if not text:
        return []
    return [part.strip() for part in text.split(";") if part.strip()]


def map_spatial_coverage(client: UdataClient, text: str | None, log: PluginLog) -> SpatialResolution:
    """Resolve each ``;``-separated place name to a zone id.

    Lookups run in parallel; a place whose lookup fails or returns nothing
    is skipped without affecting the others.
    """
    places = split_places(text)
    if not places:
        return SpatialResolution()

    def _lookup(place: str) -> dict | None:
        try:
            suggestions = client.suggest_zones(place)
        except CatalogError as exc:
            log.warning(f"Zone lookup failed for {place!r}: {exc}")
            return None
        zone = pick_zone(place, suggestions)
        if zone is None:
            log.warning(f"No zone found for {place!r}")
        elif normalize_name(zone.get("name")) != normalize_name(place):
            log.info(f"No exact zone for {place!r}, using closest suggestion {zone.get('name')!r}")
        return zone

    workers = max(1, min(SPATIAL_MAX_WORKERS, len(places)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        # map() keeps input order
        picked = list(executor.map(_lookup, places))

    resolved = [z for z in picked if z and z.get("id")]
    zones = [z["id"] for z in resolved]

    levels = {z.get("level") for z in resolved}
    if not resolved or levels == {None}:
        granularity = None
    elif len(levels) == 1 and None not in levels:
        granularity = levels.pop()
    else:
        granularity = MIXED_GRANULARITY

    log.info(f"Spatial coverage: {len(zones)}/{len(places)} place(s) resolved")
    return SpatialResolution(zones=zones, granularity=granularity)

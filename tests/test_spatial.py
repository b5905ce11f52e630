"""Tests for the spatial coverage resolver and its matching heuristics."""

from udata_catalog.catalog.client import UdataClient
from udata_catalog.catalog.spatial import MIXED_GRANULARITY, map_spatial_coverage, split_places
from udata_catalog.helpers.matching import normalize_name, pick_zone

CATALOG_URL = "https://udata.test"

REGIONS = {
    "Corse": "fr:region:94",
    "Martinique": "fr:region:02",
    "Guyane": "fr:region:03",
    "La Réunion": "fr:region:04",
    "Mayotte": "fr:region:06",
}


def _zone(zone_id, name, level):
    return {"id": zone_id, "name": name, "level": level, "code": zone_id.rsplit(":", 1)[-1]}


# ── Parsing and matching ────────────────────────────────────


def test_split_places():
    assert split_places("Corse; Martinique;; ") == ["Corse", "Martinique"]
    assert split_places("") == []
    assert split_places(None) == []


def test_normalize_name():
    assert normalize_name("Saint-Étienne") == "saint etienne"
    assert normalize_name("L'Haÿ-les-Roses") == "l hay les roses"
    assert normalize_name("  Côtes   d’Armor ") == "cotes d armor"
    assert normalize_name(None) == ""


def test_pick_zone_prefers_exact_name():
    suggestions = [
        _zone("fr:commune:56260", "Vannes-sur-Cosson", "fr:commune"),
        _zone("fr:commune:56260b", "Vannes", "fr:commune"),
    ]
    assert pick_zone("vannes", suggestions)["name"] == "Vannes"


def test_pick_zone_falls_back_to_first():
    suggestions = [_zone("fr:commune:1", "Brest", "fr:commune"), _zone("fr:commune:2", "Brestot", "fr:commune")]
    assert pick_zone("Brest Métropole", suggestions)["id"] == "fr:commune:1"
    assert pick_zone("anything", []) is None


# ── Resolution ──────────────────────────────────────────────


def test_all_regions_resolved(udata, plugin_log):
    for name, zone_id in REGIONS.items():
        udata.zones[name] = [_zone(zone_id, name, "fr:region")]

    text = "Corse; Martinique; Guyane; La Réunion; Mayotte"
    res = map_spatial_coverage(UdataClient(CATALOG_URL), text, plugin_log)

    assert res.zones == list(REGIONS.values())
    assert res.granularity == "fr:region"


def test_mixed_levels(udata, plugin_log):
    udata.zones["Vannes"] = [_zone("fr:commune:56260", "Vannes", "fr:commune")]
    udata.zones["France"] = [_zone("country:fr", "France", "country")]

    res = map_spatial_coverage(UdataClient(CATALOG_URL), "Vannes;France", plugin_log)

    assert res.zones == ["fr:commune:56260", "country:fr"]
    assert res.granularity == MIXED_GRANULARITY


def test_zones_without_level_have_no_granularity(udata, plugin_log):
    udata.zones["Corse"] = [{"id": "fr:region:94", "name": "Corse"}]
    udata.zones["Guyane"] = [{"id": "fr:region:03", "name": "Guyane"}]

    res = map_spatial_coverage(UdataClient(CATALOG_URL), "Corse;Guyane", plugin_log)

    assert res.zones == ["fr:region:94", "fr:region:03"]
    assert res.granularity is None


def test_unmappable(udata, plugin_log):
    res = map_spatial_coverage(UdataClient(CATALOG_URL), "Atlantis", plugin_log)

    assert res.zones == []
    assert res.granularity is None
    assert any("Atlantis" in w for w in plugin_log.of("warning"))


def test_empty_text_makes_no_request(udata, plugin_log):
    res = map_spatial_coverage(UdataClient(CATALOG_URL), " ; ", plugin_log)

    assert res.zones == []
    assert udata.calls == []


def test_failed_lookup_skipped(udata, plugin_log):
    udata.zones["Corse"] = [_zone("fr:region:94", "Corse", "fr:region")]
    udata.zones["Mayotte"] = [_zone("fr:region:06", "Mayotte", "fr:region")]
    udata.zone_failures.add("Guyane")

    res = map_spatial_coverage(UdataClient(CATALOG_URL), "Corse;Guyane;Mayotte", plugin_log)

    assert res.zones == ["fr:region:94", "fr:region:06"]
    assert res.granularity == "fr:region"
    assert any("Guyane" in w for w in plugin_log.of("warning"))


def test_closest_suggestion_used(udata, plugin_log):
    udata.zones["Bretagne"] = [_zone("fr:region:53", "Bretagne (Région)", "fr:region")]

    res = map_spatial_coverage(UdataClient(CATALOG_URL), "Bretagne", plugin_log)

    assert res.zones == ["fr:region:53"]
    assert any("closest" in m for m in plugin_log.of("info"))


def test_lookups_use_suggest_size(udata, plugin_log):
    udata.zones["Paris"] = [_zone("fr:commune:75056", "Paris", "fr:commune")]

    map_spatial_coverage(UdataClient(CATALOG_URL), "Paris", plugin_log)

    _, path, call = udata.calls[0]
    assert path == "/api/1/spatial/zones/suggest/"
    assert call["params"] == {"q": "Paris", "size": 10}

"""Best-effort matching heuristics, kept free of any network code."""

import re
import unicodedata
from urllib.parse import urlsplit

# Download endpoints generated for a dataset's primary file. Their URLs are
# stable per dataset even when the rest of the URL is re-derived.
GENERATED_SUFFIXES = ("/raw", "/convert")


def normalize_name(text: str | None) -> str:
    """Fold a place name for comparison.

    Hyphens, apostrophes and runs of whitespace become single spaces, then
    the result is folded to lowercase ASCII.
    """
    if not text:
        return ""
    spaced = re.sub(r"[-'’_\s]+", " ", text)
    ascii_text = unicodedata.normalize("NFKD", spaced).encode("ascii", "ignore").decode("ascii")
    return ascii_text.lower().strip()


def generated_suffix(url: str | None) -> str | None:
    """Return ``/raw`` or ``/convert`` when *url*'s path ends with one, else None."""
    if not url:
        return None
    path = urlsplit(url).path.rstrip("/")
    for suffix in GENERATED_SUFFIXES:
        if path.endswith(suffix):
            return suffix
    return None


def embed_kind(resource: dict) -> str | None:
    """Read the embed marker that distinguishes resources sharing one landing URL."""
    extras = resource.get("extras") or {}
    return extras.get("embed") or None


def match_existing_resource(
    resource: dict, existing: list[dict], taken: set[str] | None = None,
) -> dict | None:
    """Find the remote resource that *resource* should take the id of.

    Precedence:
      1. generated ``/raw`` or ``/convert`` link → match on that suffix only;
      2. identical URL → when both sides carry an embed marker the markers
         must agree; a candidate with the same title is preferred;
      3. otherwise no match.

    Resources whose id is in *taken* are never returned again.
    """
    taken = taken or set()
    candidates = [r for r in existing if r.get("id") and r["id"] not in taken]
    url = resource.get("url")

    suffix = generated_suffix(url)
    if suffix:
        return next((r for r in candidates if generated_suffix(r.get("url")) == suffix), None)

    if not url:
        return None

    same_url = []
    for r in candidates:
        if r.get("url") != url:
            continue
        new_kind, old_kind = embed_kind(resource), embed_kind(r)
        if new_kind and old_kind and new_kind != old_kind:
            continue
        same_url.append(r)

    if not same_url:
        return None

    # Markers agreeing on both sides are the strongest signal
    for r in same_url:
        if embed_kind(resource) and embed_kind(resource) == embed_kind(r):
            return r
    for r in same_url:
        if r.get("title") == resource.get("title"):
            return r
    return same_url[0]


def reconcile_resource_ids(resources: list[dict], existing: list[dict]) -> list[tuple[dict, dict]]:
    """Copy ids from *existing* remote resources onto matching new *resources*.

    Mutates *resources* in place and returns the (new, existing) pairs that
    matched.  Each existing id is handed out at most once.
    """
    taken: set[str] = set()
    pairs = []
    for resource in resources:
        match = match_existing_resource(resource, existing, taken)
        if match is None:
            resource.pop("id", None)
            continue
        resource["id"] = match["id"]
        taken.add(match["id"])
        pairs.append((resource, match))
    return pairs


def pick_zone(name: str, suggestions: list[dict]) -> dict | None:
    """Choose the zone for *name* among ranked *suggestions*.

    An exact match on the normalized name wins; otherwise the top-ranked
    suggestion is taken.  Returns None for an empty list.
    """
    if not suggestions:
        return None
    wanted = normalize_name(name)
    for zone in suggestions:
        if normalize_name(zone.get("name")) == wanted:
            return zone
    return suggestions[0]

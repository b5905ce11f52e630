"""Match local license references against the remote catalog's license list."""

import re

# https://doc.data.gouv.fr/api/reference/#/datasets/list_licenses
# Entries look like {"id", "title", "url", "alternate_urls", "alternate_titles", ...}


def canonical_url(url: str | None) -> str:
    """Reduce a license URL to a comparable form.

    Scheme, ``www.`` prefix, trailing slashes and case are ignored so that
    ``https://www.etalab.gouv.fr/licence-ouverte-open-licence/`` and
    ``http://etalab.gouv.fr/licence-ouverte-open-licence`` compare equal.
    """
    if not url:
        return ""
    cleaned = re.sub(r"^[a-z]+://", "", url.strip().lower())
    cleaned = re.sub(r"^www\.", "", cleaned)
    return cleaned.rstrip("/")


def license_by_id(licenses: list[dict], license_id: str | None) -> dict | None:
    """Return the catalog license with *license_id*, if any."""
    if not license_id:
        return None
    return next((lic for lic in licenses if lic.get("id") == license_id), None)


def license_by_url(licenses: list[dict], href: str | None) -> dict | None:
    """Return the catalog license whose URL (or an alternate URL) matches *href*."""
    wanted = canonical_url(href)
    if not wanted:
        return None

    # Primary URLs win over alternates
    for lic in licenses:
        if canonical_url(lic.get("url")) == wanted:
            return lic
    for lic in licenses:
        if any(canonical_url(alt) == wanted for alt in lic.get("alternate_urls") or []):
            return lic
    return None

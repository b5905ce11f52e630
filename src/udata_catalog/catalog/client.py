"""Thin client for the Udata REST API (https://doc.data.gouv.fr/api/reference/)."""

import logging
from pathlib import Path

import httpx

from udata_catalog.errors import CatalogError
from udata_catalog.settings import HTTP_TIMEOUT, ZONE_SUGGEST_SIZE
from udata_catalog.storage.files import guess_extension, safe_filename

log = logging.getLogger("udata_catalog")


class UdataClient:
    """Issues requests against one Udata instance and returns decoded JSON.

    Every non-2xx answer is raised as a :class:`CatalogError` carrying the
    remote status.  No retry is attempted.
    """

    def __init__(self, catalog_url: str, api_key: str | None = None) -> None:
        self._host = catalog_url.rstrip("/")
        self._api_key = api_key or None

    @property
    def catalog_url(self) -> str:
        return self._host

    @property
    def has_api_key(self) -> bool:
        return self._api_key is not None

    def _url(self, path: str) -> str:
        return f"{self._host}/api/1/{path.lstrip('/')}"

    def _headers(self) -> dict:
        return {"X-API-KEY": self._api_key} if self._api_key else {}

    def _check(self, r: httpx.Response, what: str) -> httpx.Response:
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CatalogError(
                f"{what} failed on {self._host} (HTTP {r.status_code}): {_remote_message(r)}",
                status=r.status_code,
            ) from exc
        return r

    def _get(self, path: str, what: str, params: dict | None = None):
        try:
            r = httpx.get(
                self._url(path), params=params, headers=self._headers(),
                timeout=HTTP_TIMEOUT, follow_redirects=True,
            )
        except httpx.TransportError as exc:
            raise CatalogError(f"{what} failed on {self._host}: {exc}") from exc
        return self._check(r, what).json()

    def _send(self, method: str, path: str, what: str, payload: dict | None = None):
        call = {"POST": httpx.post, "PUT": httpx.put}[method]
        try:
            r = call(self._url(path), json=payload, headers=self._headers(), timeout=HTTP_TIMEOUT)
        except httpx.TransportError as exc:
            raise CatalogError(f"{what} failed on {self._host}: {exc}") from exc
        return self._check(r, what).json()

    def _delete(self, path: str, what: str) -> None:
        try:
            r = httpx.delete(self._url(path), headers=self._headers(), timeout=HTTP_TIMEOUT)
        except httpx.TransportError as exc:
            raise CatalogError(f"{what} failed on {self._host}: {exc}") from exc
        self._check(r, what)

    # ── Datasets ────────────────────────────────────────────

    def search_datasets(
        self, q: str | None = None, page: int | None = None,
        page_size: int | None = None, organization: str | None = None,
    ) -> dict:
        """Catalog-wide search; returns the paginated envelope ``{data, total, ...}``."""
        params: dict[str, str | int] = {}
        if q:
            params["q"] = q
        if page and page_size:
            params["page"] = page
            params["page_size"] = page_size
        if organization:
            params["organization"] = organization
        return self._get("datasets/", "Dataset search", params=params)

    def list_org_datasets(self) -> list[dict]:
        """Every dataset of the key owner's organizations, unpaginated."""
        return self._get("me/org_datasets", "Organization datasets listing")

    def list_my_datasets(self) -> list[dict]:
        """Every dataset owned by the key owner, unpaginated."""
        return self._get("me/datasets", "Personal datasets listing")

    def get_dataset(self, dataset_id: str) -> dict:
        return self._get(f"datasets/{dataset_id}/", f"Fetching dataset {dataset_id}")

    def create_dataset(self, payload: dict) -> dict:
        return self._send("POST", "datasets/", "Dataset creation", payload)

    def update_dataset(self, dataset_id: str, payload: dict) -> dict:
        return self._send("PUT", f"datasets/{dataset_id}/", f"Updating dataset {dataset_id}", payload)

    def delete_dataset(self, dataset_id: str) -> None:
        self._delete(f"datasets/{dataset_id}/", f"Deleting dataset {dataset_id}")

    # ── Resources ───────────────────────────────────────────

    def create_resource(self, dataset_id: str, payload: dict) -> dict:
        return self._send(
            "POST", f"datasets/{dataset_id}/resources/",
            f"Resource creation in dataset {dataset_id}", payload,
        )

    def update_resource(self, dataset_id: str, resource_id: str, payload: dict) -> dict:
        return self._send(
            "PUT", f"datasets/{dataset_id}/resources/{resource_id}/",
            f"Updating resource {resource_id}", payload,
        )

    def delete_resource(self, dataset_id: str, resource_id: str) -> None:
        self._delete(
            f"datasets/{dataset_id}/resources/{resource_id}/",
            f"Deleting resource {resource_id}",
        )

    # ── Reference data ──────────────────────────────────────

    def list_licenses(self) -> list[dict]:
        return self._get("datasets/licenses/", "License listing")

    def me(self) -> dict:
        return self._get("me/", "Current user lookup")

    def suggest_zones(self, q: str, size: int = ZONE_SUGGEST_SIZE) -> list[dict]:
        return self._get(
            "spatial/zones/suggest/", f"Zone suggestion for {q!r}",
            params={"q": q, "size": size},
        )

    # ── File download ───────────────────────────────────────

    def pull_file(self, url: str, dest_dir: str, title: str | None = None) -> str:
        """Stream a resource body to disk and return the local path.

        The file is named after *title* with an extension taken from the URL
        or, failing that, the response Content-Type.  Returns only once the
        file is fully written and closed.
        """
        target = Path(dest_dir)
        target.mkdir(parents=True, exist_ok=True)
        out: Path | None = None

        try:
            with httpx.stream(
                "GET", url, timeout=HTTP_TIMEOUT, follow_redirects=True,
            ) as resp:
                if resp.is_error:
                    raise CatalogError(
                        f"Download of {url} failed (HTTP {resp.status_code})",
                        status=resp.status_code,
                    )
                ext = guess_extension(url, resp.headers.get("content-type"))
                out = target / f"{safe_filename(title)}{ext}"
                with open(out, "wb") as fh:
                    for chunk in resp.iter_bytes(chunk_size=8192):
                        fh.write(chunk)
        except httpx.TransportError as exc:
            if out is not None:
                out.unlink(missing_ok=True)
            raise CatalogError(f"Download of {url} from {self._host} failed: {exc}") from exc
        except OSError:
            if out is not None:
                out.unlink(missing_ok=True)
            raise

        log.info("Saved %s -> %s", url, out)
        return str(out)


def _remote_message(r: httpx.Response) -> str:
    """Pick the human-readable part of a Udata error body."""
    try:
        body = r.json()
    except ValueError:
        return r.text[:200] or r.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("errors") or body)
    return str(body)

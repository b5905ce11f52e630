"""Project remote datasets and resources onto a two-level folder tree."""

from udata_catalog.catalog.base import (
    Folder,
    ListParams,
    ListResult,
    ResourceListing,
    join_resource_id,
)
from udata_catalog.catalog.client import UdataClient
from udata_catalog.errors import CatalogError, UnauthorizedError
from udata_catalog.helpers.log import PluginLog
from udata_catalog.helpers.matching import normalize_name

# Title of the metadata-only stub resource generated on publication
PLACEHOLDER_MARKER = "Consultez les données"
DELETED_PREFIX = "[Deleted] "

_RESOURCE_ACTIONS = {"createResource", "replaceResource"}


def list_catalog(client: UdataClient, params: ListParams, log: PluginLog) -> ListResult:
    """List a dataset's resources, or the datasets at root level."""
    if params.action and not client.has_api_key:
        raise UnauthorizedError("API key is required to list datasets for publication")

    if params.current_folder_id:
        return _list_resources(client, params.current_folder_id)

    if params.show_all and not params.action:
        envelope = client.search_datasets(
            q=params.q, page=params.page, page_size=params.size,
            organization=params.organization,
        )
        datasets = envelope.get("data") or []
        count = envelope.get("total", len(datasets))
    else:
        datasets, count = _list_owned(client, params, log)

    folders = [
        Folder(id=d["id"], title=_folder_title(d, params.action))
        for d in datasets
    ]
    return ListResult(count=count, results=folders, path=[])


def _list_resources(client: UdataClient, dataset_id: str) -> ListResult:
    dataset = client.get_dataset(dataset_id)
    resources = [
        ResourceListing(
            id=join_resource_id(dataset["id"], r["id"]),
            title=r.get("title") or "",
            description=dataset.get("description") or "",
            format=r.get("format") or "unknown",
            mime_type=r.get("mime"),
            origin=dataset.get("page"),
            size=r.get("filesize"),
        )
        for r in dataset.get("resources") or []
    ]
    path = [Folder(id=dataset["id"], title=dataset.get("title") or "")]
    return ListResult(count=len(resources), results=resources, path=path)


def _list_owned(client: UdataClient, params: ListParams, log: PluginLog) -> tuple[list[dict], int]:
    """Emulate filtering and pagination over an unpaginated listing endpoint."""
    datasets = client.list_my_datasets() if params.only_me else client.list_org_datasets()

    if params.action != "replaceFolder":
        datasets = [d for d in datasets if not d.get("deleted")]

    if params.q:
        datasets = search_datasets(datasets, params.q)

    if params.action in _RESOURCE_ACTIONS:
        datasets = _without_placeholder(client, datasets, log)

    count = len(datasets)
    return paginate(datasets, params.page, params.size), count


def search_datasets(datasets: list[dict], q: str) -> list[dict]:
    """Keep datasets whose title or description contains every word of *q*."""
    words = normalize_name(q).split()
    if not words:
        return datasets
    kept = []
    for d in datasets:
        haystack = normalize_name(f"{d.get('title') or ''} {d.get('description') or ''}")
        if all(w in haystack for w in words):
            kept.append(d)
    return kept


def paginate(items: list, page: int | None, size: int | None) -> list:
    """Slice ``[(page-1)*size, (page-1)*size+size)``; no slicing without both."""
    if not page or not size:
        return items
    start = (page - 1) * size
    return items[start:start + size]


def _without_placeholder(client: UdataClient, datasets: list[dict], log: PluginLog) -> list[dict]:
    """Drop datasets already holding a generated "view the data" stub.

    A dataset whose details cannot be fetched is kept.
    """
    if not datasets:
        return datasets
    kept = []
    log.task("placeholder-check", "Checking dataset resources", len(datasets))
    for i, d in enumerate(datasets, 1):
        try:
            details = client.get_dataset(d["id"])
        except CatalogError as exc:
            log.warning(f"Could not inspect dataset {d['id']}, keeping it: {exc}")
            kept.append(d)
        else:
            has_stub = any(
                PLACEHOLDER_MARKER in (r.get("title") or "")
                for r in details.get("resources") or []
            )
            if not has_stub:
                kept.append(d)
        log.progress("placeholder-check", i)
    return kept


def _folder_title(dataset: dict, action: str | None) -> str:
    title = dataset.get("title") or ""
    if dataset.get("deleted") and action == "replaceFolder":
        return DELETED_PREFIX + title
    return title

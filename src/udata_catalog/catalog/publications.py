"""Publish local datasets to a Udata catalog, and remove them again."""

import copy
from datetime import datetime, timezone

from udata_catalog.catalog.base import (
    CatalogConfig,
    Publication,
    PublicationMode,
    PublicationSite,
    RemoteRef,
    join_resource_id,
    split_resource_id,
)
from udata_catalog.catalog.client import UdataClient
from udata_catalog.catalog.spatial import map_spatial_coverage
from udata_catalog.errors import (
    CatalogError,
    GoneError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from udata_catalog.helpers.licensing import license_by_url
from udata_catalog.helpers.log import PluginLog
from udata_catalog.helpers.matching import reconcile_resource_ids

VIEW_TITLE = "Consultez les données"
API_DOC_TITLE = "Documentation de l'API"
API_DOC_DESCRIPTION = (
    "Documentation interactive de l'API à destination des développeurs. "
    "La description de l'API utilise la spécification "
    "[OpenAPI 3.1.1](https://github.com/OAI/OpenAPI-Specification)"
)
FIELDS_TITLE = "Description des champs"
FIELDS_DESCRIPTION = "Description détaillée et types sémantiques des champs"

_WEB_PAGE = {"filetype": "remote", "format": "Page Web", "mime": "text/html"}


# ── Resource list ───────────────────────────────────────────


def view_description(dataset: dict) -> str:
    support = "une carte interactive" if dataset.get("bbox") else "un tableau"
    return f"Consultez directement les données dans {support}."


def _file_format(file_info: dict) -> str:
    return (file_info.get("name") or "").rsplit(".", 1)[-1]


def build_resources(dataset: dict, site: PublicationSite) -> list[dict]:
    """Compute the remote resource list of *dataset*, in a stable order."""
    access_url = site.dataset_url(dataset)
    data_api = f"{site.url}/data-fair/api/v1/datasets/{dataset['id']}"
    resources: list[dict] = []

    if dataset.get("isMetaOnly"):
        resources.append({
            "title": VIEW_TITLE,
            "description": "Consultez le jeu de données",
            "url": access_url,
            "type": "main",
            "extras": {"embed": "view"},
            **_WEB_PAGE,
        })
    else:
        resources.append({
            "title": VIEW_TITLE,
            "description": view_description(dataset),
            "url": access_url,
            "type": "main",
            "extras": {"embed": "view"},
            **_WEB_PAGE,
        })
        resources.append({
            "title": API_DOC_TITLE,
            "description": API_DOC_DESCRIPTION,
            "url": access_url + "/api-doc",
            "type": "documentation",
            **_WEB_PAGE,
        })
        if dataset.get("schema"):
            resources.append({
                "title": FIELDS_TITLE,
                "description": FIELDS_DESCRIPTION,
                "url": access_url,
                "type": "documentation",
                "extras": {"embed": "fields"},
                **_WEB_PAGE,
            })

    main_file = dataset.get("file")
    if main_file:
        original = dataset.get("originalFile") or main_file
        original_format = _file_format(original)
        resources.append({
            "title": f"Fichier {original_format}",
            "description": f"Téléchargez le fichier complet au format {original_format}.",
            "url": f"{data_api}/raw",
            "type": "main",
            "filetype": "remote",
            "filesize": original.get("size"),
            "mime": original.get("mimetype"),
            "format": original_format,
        })
        if main_file.get("mimetype") != original.get("mimetype"):
            file_format = _file_format(main_file)
            resources.append({
                "title": f"Fichier {file_format}",
                "description": f"Téléchargez le fichier complet au format {file_format}.",
                "url": f"{data_api}/convert",
                "type": "main",
                "filetype": "remote",
                "filesize": main_file.get("size"),
                "mime": main_file.get("mimetype"),
                "format": file_format,
            })

    for attachment in dataset.get("attachments") or []:
        if not attachment.get("includeInCatalogPublications"):
            continue
        kind = attachment.get("type")
        if kind == "url":
            resources.append({
                "title": attachment.get("title"),
                "description": attachment.get("description"),
                "url": attachment.get("url"),
            })
        elif kind in ("file", "remoteFile"):
            name = attachment.get("name") or ""
            entry = {
                "title": attachment.get("title"),
                "description": attachment.get("description"),
                "url": f"{data_api}/metadata-attachments/{name}",
                "filetype": "remote",
                "format": name.rsplit(".", 1)[-1],
            }
            # Remote files are hosted elsewhere, their size is unknown here
            if kind == "file":
                entry["filesize"] = attachment.get("size")
                entry["mime"] = attachment.get("mimetype")
            resources.append(entry)

    return resources


# ── Dataset payload ─────────────────────────────────────────


def iso_utc(value: str) -> str:
    """Normalise a date or datetime string to ISO 8601 in UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid date {value!r}, expected ISO 8601") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


def build_dataset_payload(dataset: dict, resources: list[dict]) -> dict:
    """Map the catalog-independent parts of *dataset* to a Udata payload."""
    payload: dict = {
        "title": dataset.get("title"),
        # Udata requires a description
        "description": dataset.get("description") or dataset.get("title"),
        "private": not dataset.get("public", False),
        "resources": resources,
    }
    if dataset.get("frequency"):
        payload["frequency"] = dataset["frequency"]
    temporal = dataset.get("temporal") or {}
    if temporal.get("start"):
        payload["temporal_coverage"] = {
            "start": iso_utc(temporal["start"]),
            "end": iso_utc(temporal.get("end") or temporal["start"]),
        }
    if dataset.get("keywords"):
        payload["tags"] = list(dataset["keywords"])
    return payload


def deep_merge(base: dict, override: dict) -> dict:
    """Return *base* updated with *override*; nested dicts merge, everything else is replaced."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


# ── Operations ──────────────────────────────────────────────


def publish_dataset(
    client: UdataClient, dataset: dict, publication: Publication,
    site: PublicationSite, catalog_config: CatalogConfig, log: PluginLog,
) -> Publication:
    """Dispatch on the publication mode."""
    if not client.has_api_key:
        raise UnauthorizedError("API key is required to publish a dataset")
    if publication.mode is PublicationMode.RESOURCE:
        return create_or_update_resource(client, dataset, publication, site, log)
    return create_or_update_dataset(client, dataset, publication, site, catalog_config, log)


def create_or_update_dataset(
    client: UdataClient, dataset: dict, publication: Publication,
    site: PublicationSite, catalog_config: CatalogConfig, log: PluginLog,
) -> Publication:
    """Publish *dataset* as a whole remote dataset, updating it in place when known.

    A remote dataset referenced by *publication* that no longer exists is an
    error; one that was soft-deleted is revived.
    """
    log.step("Preparing the dataset for publication")
    log.info(f"Dataset access URL: {site.dataset_url(dataset)}")

    resources = build_resources(dataset, site)
    log.info(f"{len(resources)} resource(s) to publish")

    log.step("Building the remote dataset")
    payload = build_dataset_payload(dataset, resources)

    license_href = (dataset.get("license") or {}).get("href")
    if license_href:
        log.info(f"Searching for corresponding license: {license_href}")
        match = license_by_url(client.list_licenses(), license_href)
        if match:
            log.info(f"License found: {match.get('title')}")
            payload["license"] = match["id"]
        else:
            log.warning(f"License not found on {client.catalog_url}: {license_href}")

    org_id = (catalog_config.organization or {}).get("id")
    if org_id:
        log.info(f"Associating with organization: {org_id}")
        payload["organization"] = {"id": org_id}

    if dataset.get("spatial"):
        log.info(f"Resolving spatial coverage: {dataset['spatial']}")
        spatial = map_spatial_coverage(client, dataset["spatial"], log)
        if spatial.zones:
            payload["spatial"] = {"zones": spatial.zones}
            if spatial.granularity:
                payload["spatial"]["granularity"] = spatial.granularity

    if publication.remote_folder:
        remote_id = publication.remote_folder.id
        log.step(f"Updating existing remote dataset: {remote_id}")
        try:
            existing = client.get_dataset(remote_id)
        except CatalogError as exc:
            if exc.status in (404, 410):
                raise NotFoundError(
                    f"Unable to retrieve the existing dataset {remote_id} from "
                    f"{client.catalog_url}. Was it deleted from the catalog?"
                ) from exc
            raise

        if existing.get("deleted"):
            log.warning(f"The remote dataset {remote_id} was deleted, restoring it")
            existing["deleted"] = None

        for new, old in reconcile_resource_ids(resources, existing.get("resources") or []):
            log.info(f"Preserving identifier for resource: {new.get('title')} (ID: {old['id']})")

        result = client.update_dataset(remote_id, deep_merge(existing, payload))
        remote_id = result.get("id") or remote_id
        log.info("Update successful")
    else:
        log.step("Creating a new dataset")
        result = client.create_dataset(payload)
        remote_id = result["id"]
        log.info(f"New dataset created with ID: {remote_id}")

    publication.remote_folder = RemoteRef(
        id=remote_id,
        title=result.get("title"),
        url=result.get("page"),
    )
    return publication


def create_or_update_resource(
    client: UdataClient, dataset: dict, publication: Publication,
    site: PublicationSite, log: PluginLog,
) -> Publication:
    """Attach *dataset* as a single "view the data" resource of an existing remote dataset."""
    log.step("Preparing the resource for publication")

    dataset_id = publication.remote_folder.id if publication.remote_folder else None
    prior_resource_id = None
    if publication.remote_resource:
        prior_resource_id = publication.remote_resource.id
        if ":" in prior_resource_id or dataset_id is None:
            dataset_id, prior_resource_id = split_resource_id(prior_resource_id)
    if dataset_id is None:
        raise InvalidInputError("No remote dataset associated with this publication")

    log.info(f"Retrieving remote dataset {dataset_id}")
    try:
        remote = client.get_dataset(dataset_id)
    except CatalogError as exc:
        if exc.status in (404, 410):
            raise NotFoundError(f"Remote dataset {dataset_id} not found on {client.catalog_url}") from exc
        raise
    if remote.get("deleted"):
        raise GoneError(f"Remote dataset {dataset_id} was deleted from {client.catalog_url}")

    title = f"{dataset.get('title')} - {VIEW_TITLE}"
    description = view_description(dataset)
    url = site.dataset_url(dataset)

    existing = next(
        (r for r in remote.get("resources") or [] if prior_resource_id and r.get("id") == prior_resource_id),
        None,
    )
    if existing:
        log.step(f"Updating existing resource {prior_resource_id}")
        updated = {**existing, "title": title, "description": description, "url": url}
        result = client.update_resource(dataset_id, prior_resource_id, updated)
        log.info(f"Resource {prior_resource_id} updated successfully")
    else:
        log.step("Creating a new resource")
        resource = {
            "title": title,
            "description": description,
            "url": url,
            "type": "main",
            "extras": {"embed": "view"},
            **_WEB_PAGE,
        }
        result = client.create_resource(dataset_id, resource)
        log.info(f"Resource created with ID: {result.get('id')}")

    publication.remote_resource = RemoteRef(
        id=join_resource_id(dataset_id, result.get("id") or prior_resource_id),
        title=result.get("title") or title,
        url=remote.get("page"),
    )
    publication.remote_folder = RemoteRef(id=dataset_id, title=remote.get("title"), url=remote.get("page"))
    return publication


def delete_publication(
    client: UdataClient, folder_id: str, resource_id: str | None, log: PluginLog,
) -> None:
    """Delete a remote dataset, or only one of its resources.

    Objects already gone (404/410) are not an error.
    """
    if not client.has_api_key:
        raise UnauthorizedError("API key is required to delete a publication")

    if resource_id:
        if ":" in resource_id:
            folder_id, resource_id = split_resource_id(resource_id)
        what = f"resource {resource_id} of dataset {folder_id}"
    else:
        what = f"dataset {folder_id}"

    log.step(f"Deleting {what}")
    try:
        if resource_id:
            client.delete_resource(folder_id, resource_id)
        else:
            client.delete_dataset(folder_id)
    except CatalogError as exc:
        if exc.status in (404, 410):
            log.warning(f"The {what} does not exist or was already deleted (code {exc.status})")
            return
        log.error(f"Error deleting {what}: {exc.message}")
        raise CatalogError(f"Error deleting {what} on {client.catalog_url}: {exc.message}") from exc
    log.info(f"Deleted {what}")

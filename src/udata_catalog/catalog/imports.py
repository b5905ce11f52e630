"""Resolve a composite resource id, download the file and describe it."""

from udata_catalog.catalog.base import ImportConfig, Resource, split_resource_id
from udata_catalog.catalog.client import UdataClient
from udata_catalog.errors import CatalogError, NotFoundError
from udata_catalog.helpers.licensing import license_by_id
from udata_catalog.helpers.log import PluginLog


def get_resource(
    client: UdataClient, resource_id: str, import_config: ImportConfig,
    tmp_dir: str, log: PluginLog,
) -> Resource:
    """Download the resource identified by ``datasetId:resourceId`` into *tmp_dir*."""
    dataset_id, udata_resource_id = split_resource_id(resource_id)

    log.step(f"Fetching dataset {dataset_id}")
    try:
        dataset = client.get_dataset(dataset_id)
    except CatalogError as exc:
        if exc.status in (404, 410):
            raise NotFoundError(f"Dataset {dataset_id} not found on {client.catalog_url}") from exc
        raise

    udata_resource = next(
        (r for r in dataset.get("resources") or [] if r.get("id") == udata_resource_id),
        None,
    )
    if udata_resource is None:
        raise NotFoundError(
            f"Resource {udata_resource_id} not found in dataset {dataset_id} on {client.catalog_url}"
        )
    if not udata_resource.get("url"):
        raise NotFoundError(f"Resource {udata_resource_id} has no download URL")

    log.step(f"Downloading {udata_resource['url']}")
    file_path = client.pull_file(udata_resource["url"], tmp_dir, udata_resource.get("title"))
    log.info(f"Downloaded to {file_path}")

    license_id = udata_resource.get("license") or dataset.get("license")
    license = None
    if license_id:
        match = license_by_id(client.list_licenses(), license_id)
        if match:
            license = {"title": match.get("title"), "href": match.get("url")}
        else:
            log.warning(f"License {license_id} is unknown to {client.catalog_url}")

    title = dataset.get("title") if import_config.use_dataset_title else udata_resource.get("title")
    description = (
        dataset.get("description") if import_config.use_dataset_description
        else udata_resource.get("description")
    )

    return Resource(
        id=resource_id,
        title=title or "",
        description=description or "",
        file_path=file_path,
        format=udata_resource.get("format") or "unknown",
        frequency=udata_resource.get("frequency") or dataset.get("frequency"),
        license=license,
        keywords=udata_resource.get("tags") or dataset.get("tags") or [],
        mime_type=udata_resource.get("mime"),
        origin=dataset.get("page"),
        size=udata_resource.get("filesize"),
    )

"""Udata implementation of the catalog plugin contract."""

from udata_catalog.catalog import imports, listing, publications
from udata_catalog.catalog.base import (
    CatalogConfig,
    CatalogPlugin,
    ImportConfig,
    ListParams,
    ListResult,
    PrepareResult,
    Publication,
    PublicationSite,
    Resource,
)
from udata_catalog.catalog.client import UdataClient
from udata_catalog.catalog.prepare import CAPABILITIES, prepare
from udata_catalog.helpers.log import PluginLog


class UdataCatalog(CatalogPlugin):
    """Import from / publish to a Udata catalog such as data.gouv.fr.

    Each call builds a fresh :class:`UdataClient` from the catalog config and
    the ``apiKey`` secret; nothing is kept between calls.
    """

    @property
    def metadata(self) -> dict:
        return {
            "title": "Udata",
            "description": "Import / publish datasets from / to a Udata catalog. (e.g., data.gouv.fr)",
            "capabilities": list(CAPABILITIES),
        }

    @staticmethod
    def _client(config: CatalogConfig, secrets: dict | None) -> UdataClient:
        return UdataClient(config.url, (secrets or {}).get("apiKey"))

    def prepare(self, config: CatalogConfig, secrets: dict, validate: bool = False) -> PrepareResult:
        return prepare(config, secrets, validate=validate)

    def list(self, config: CatalogConfig, secrets: dict, params: ListParams, log: PluginLog) -> ListResult:
        return listing.list_catalog(self._client(config, secrets), params, log)

    def get_resource(
        self, config: CatalogConfig, secrets: dict, resource_id: str,
        import_config: ImportConfig, tmp_dir: str, log: PluginLog,
    ) -> Resource:
        return imports.get_resource(self._client(config, secrets), resource_id, import_config, tmp_dir, log)

    def publish_dataset(
        self, config: CatalogConfig, secrets: dict, dataset: dict,
        publication: Publication, publication_site: PublicationSite, log: PluginLog,
    ) -> Publication:
        return publications.publish_dataset(
            self._client(config, secrets), dataset, publication, publication_site, config, log,
        )

    def delete_publication(
        self, config: CatalogConfig, secrets: dict, folder_id: str,
        resource_id: str | None, log: PluginLog,
    ) -> None:
        publications.delete_publication(self._client(config, secrets), folder_id, resource_id, log)

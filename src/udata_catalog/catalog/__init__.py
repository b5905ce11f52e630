"""Plugin registry — maps short keys to ready-to-use catalog plugins."""

from udata_catalog.catalog.base import (
    CatalogConfig,
    CatalogPlugin,
    Folder,
    ImportConfig,
    ListParams,
    ListResult,
    Publication,
    PublicationMode,
    PublicationSite,
    RemoteRef,
    Resource,
    ResourceListing,
    SpatialResolution,
)
from udata_catalog.catalog.client import UdataClient
from udata_catalog.catalog.udata import UdataCatalog

PLUGINS: dict[str, CatalogPlugin] = {
    "udata": UdataCatalog(),
}

__all__ = [
    "PLUGINS",
    "CatalogConfig",
    "CatalogPlugin",
    "Folder",
    "ImportConfig",
    "ListParams",
    "ListResult",
    "Publication",
    "PublicationMode",
    "PublicationSite",
    "RemoteRef",
    "Resource",
    "ResourceListing",
    "SpatialResolution",
    "UdataCatalog",
    "UdataClient",
]

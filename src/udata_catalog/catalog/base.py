"""Plugin contract and the transient objects exchanged with the host platform."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from udata_catalog.errors import InvalidInputError
from udata_catalog.helpers.log import PluginLog

RESOURCE_ID_FORMAT = '"datasetId:resourceId"'

# Host actions that attach a single resource to an existing remote dataset
_RESOURCE_ACTIONS = {"createResource", "replaceResource"}


def _truthy(value: Any) -> bool:
    """Host params arrive as query strings: accept True, "true", "1"."""
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def _int_or_none(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Expected an integer, got {value!r}") from exc


def split_resource_id(resource_id: str) -> tuple[str, str]:
    """Decode a composite ``datasetId:resourceId`` identifier."""
    parts = (resource_id or "").split(":")
    if len(parts) != 2 or not all(parts):
        raise InvalidInputError(
            f"Invalid resource id format: {resource_id!r}. Expected {RESOURCE_ID_FORMAT}"
        )
    return parts[0], parts[1]


def join_resource_id(dataset_id: str, resource_id: str) -> str:
    return f"{dataset_id}:{resource_id}"


# ── Configuration ───────────────────────────────────────────


@dataclass
class CatalogConfig:
    """One remote catalog endpoint, optionally scoped to an organization."""

    url: str
    api_key: str = ""
    organization: dict | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogConfig":
        return cls(
            url=data["url"],
            api_key=data.get("apiKey", data.get("api_key", "")) or "",
            organization=data.get("organization") or None,
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"url": self.url, "apiKey": self.api_key}
        if self.organization:
            out["organization"] = self.organization
        return out


@dataclass
class PrepareResult:
    config: CatalogConfig
    capabilities: list[str]
    secrets: dict


# ── Listing ─────────────────────────────────────────────────


@dataclass
class Folder:
    """A remote dataset seen as a folder."""

    id: str
    title: str
    type: str = "folder"


@dataclass
class ResourceListing:
    """A remote file attached to a dataset, before any download."""

    id: str
    title: str
    description: str = ""
    format: str = "unknown"
    mime_type: str | None = None
    origin: str | None = None
    size: int | None = None
    type: str = "resource"


@dataclass
class Resource(ResourceListing):
    """A downloaded resource with the metadata attached to it."""

    file_path: str = ""
    frequency: str | None = None
    license: dict | None = None
    keywords: list[str] = field(default_factory=list)


@dataclass
class ListParams:
    q: str | None = None
    size: int | None = None
    page: int | None = None
    show_all: bool = False
    only_me: bool = False
    organization: str | None = None
    current_folder_id: str | None = None
    action: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ListParams":
        return cls(
            q=data.get("q") or None,
            size=_int_or_none(data.get("size")),
            page=_int_or_none(data.get("page")),
            show_all=_truthy(data.get("showAll", data.get("show_all", False))),
            only_me=_truthy(data.get("onlyMe", data.get("only_me", False))),
            organization=data.get("organization") or None,
            current_folder_id=data.get("currentFolderId", data.get("current_folder_id")) or None,
            action=data.get("action") or None,
        )


@dataclass
class ListResult:
    count: int
    results: list[Folder | ResourceListing]
    path: list[Folder]

    def to_dict(self) -> dict:
        return asdict(self)


# ── Import ──────────────────────────────────────────────────


@dataclass
class ImportConfig:
    """Where the imported title and description come from."""

    use_dataset_title: bool = False
    use_dataset_description: bool = True

    @classmethod
    def from_dict(cls, data: dict | None) -> "ImportConfig":
        data = data or {}
        return cls(
            use_dataset_title=_truthy(data.get("useDatasetTitle", False)),
            use_dataset_description=_truthy(data.get("useDatasetDescription", True)),
        )


# ── Publication ─────────────────────────────────────────────


class PublicationMode(str, Enum):
    DATASET = "dataset"
    RESOURCE = "resource"

    @classmethod
    def for_action(cls, action: str | None) -> "PublicationMode":
        return cls.RESOURCE if action in _RESOURCE_ACTIONS else cls.DATASET


@dataclass
class RemoteRef:
    id: str
    title: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "RemoteRef | None":
        if not data or not data.get("id"):
            return None
        return cls(id=data["id"], title=data.get("title"), url=data.get("url"))


@dataclass
class Publication:
    """Durable link between a local dataset and its remote counterpart.

    The host stores it between calls and hands it back unchanged.
    """

    mode: PublicationMode | None = None
    action: str | None = None
    remote_folder: RemoteRef | None = None
    remote_resource: RemoteRef | None = None

    def __post_init__(self) -> None:
        if self.mode is None:
            self.mode = PublicationMode.for_action(self.action)
        else:
            self.mode = PublicationMode(self.mode)

    @classmethod
    def from_dict(cls, data: dict) -> "Publication":
        return cls(
            mode=data.get("mode") or None,
            action=data.get("action"),
            remote_folder=RemoteRef.from_dict(data.get("remoteFolder") or data.get("remoteDataset")),
            remote_resource=RemoteRef.from_dict(data.get("remoteResource")),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"mode": self.mode.value}
        if self.action:
            out["action"] = self.action
        if self.remote_folder:
            out["remoteFolder"] = asdict(self.remote_folder)
        if self.remote_resource:
            out["remoteResource"] = asdict(self.remote_resource)
        return out


@dataclass
class PublicationSite:
    title: str
    url: str
    dataset_url_template: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PublicationSite":
        return cls(
            title=data.get("title", ""),
            url=data["url"].rstrip("/"),
            dataset_url_template=data.get("datasetUrlTemplate", data.get("dataset_url_template", "")),
        )

    def dataset_url(self, dataset: dict) -> str:
        """Fill ``{id}`` and ``{slug}`` in the site's dataset URL template."""
        return (
            self.dataset_url_template
            .replace("{id}", str(dataset.get("id", "")))
            .replace("{slug}", str(dataset.get("slug", "")))
        )


@dataclass
class SpatialResolution:
    zones: list[str] = field(default_factory=list)
    granularity: str | None = None


# ── Contract ────────────────────────────────────────────────


class CatalogPlugin(ABC):
    """Contract every catalog connector offers to the host platform."""

    @property
    @abstractmethod
    def metadata(self) -> dict:
        """Title, description and capabilities shown by the host."""

    @abstractmethod
    def prepare(self, config: CatalogConfig, secrets: dict, validate: bool = False) -> PrepareResult:
        """Move secrets out of the visible config and compute capabilities."""

    @abstractmethod
    def list(self, config: CatalogConfig, secrets: dict, params: ListParams, log: PluginLog) -> ListResult:
        """Browse remote folders and resources."""

    @abstractmethod
    def get_resource(
        self, config: CatalogConfig, secrets: dict, resource_id: str,
        import_config: ImportConfig, tmp_dir: str, log: PluginLog,
    ) -> Resource:
        """Download one remote resource into *tmp_dir*."""

    @abstractmethod
    def publish_dataset(
        self, config: CatalogConfig, secrets: dict, dataset: dict,
        publication: Publication, publication_site: PublicationSite, log: PluginLog,
    ) -> Publication:
        """Create or update the remote counterpart of a local dataset."""

    @abstractmethod
    def delete_publication(
        self, config: CatalogConfig, secrets: dict, folder_id: str,
        resource_id: str | None, log: PluginLog,
    ) -> None:
        """Remove a remote dataset, or one of its resources."""

"""Keep the API key out of the visible config and derive capabilities from it."""

from udata_catalog.catalog.base import CatalogConfig, PrepareResult
from udata_catalog.catalog.client import UdataClient
from udata_catalog.errors import CatalogError, ForbiddenError, UnauthorizedError
from udata_catalog.settings import API_KEY_MASK

CAPABILITIES = [
    "import",
    "search",
    "pagination",
    "additionalFilters",
    "publishDataset",
    "deletePublication",
]

# Capabilities that only make sense with a write-capable key
_KEYED_CAPABILITIES = ("publishDataset",)


def prepare(
    config: CatalogConfig, secrets: dict, capabilities: list[str] | None = None,
    validate: bool = False,
) -> PrepareResult:
    """Mask the API key in *config* and keep the real one in *secrets*.

    A clear-text key typed in the config is moved to ``secrets["apiKey"]``
    and replaced by the mask; a key emptied by the user removes the stored
    secret.  With *validate*, the key is checked against ``/api/1/me``.
    """
    secrets = secrets if secrets is not None else {}
    caps = list(capabilities if capabilities is not None else CAPABILITIES)

    if config.api_key and config.api_key != API_KEY_MASK:
        secrets["apiKey"] = config.api_key
        config.api_key = API_KEY_MASK
    elif secrets.get("apiKey") and config.api_key == "":
        del secrets["apiKey"]

    if secrets.get("apiKey"):
        for cap in _KEYED_CAPABILITIES:
            if cap not in caps:
                caps.append(cap)
        if validate:
            check_api_key(UdataClient(config.url, secrets["apiKey"]), config.organization)
    else:
        caps = [c for c in caps if c not in _KEYED_CAPABILITIES]

    return PrepareResult(config=config, capabilities=caps, secrets=secrets)


def check_api_key(client: UdataClient, organization: dict | None = None) -> dict:
    """Fetch the key owner and, when configured, verify organization membership."""
    try:
        me = client.me()
    except CatalogError as exc:
        if exc.status == 401:
            raise UnauthorizedError(f"Invalid API key for {client.catalog_url}") from exc
        if exc.status == 403:
            raise ForbiddenError(f"API key refused by {client.catalog_url}") from exc
        raise

    org_id = (organization or {}).get("id")
    if org_id:
        member_of = {org.get("id") for org in me.get("organizations") or []}
        if org_id not in member_of:
            label = (organization or {}).get("name") or org_id
            raise ForbiddenError(
                f"The API key owner has no access to organization {label} on {client.catalog_url}"
            )
    return me

"""Command-line interface for exercising the Udata catalog plugin."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from udata_catalog.catalog import PLUGINS
from udata_catalog.catalog.base import (
    CatalogConfig,
    ImportConfig,
    ListParams,
    Publication,
    PublicationSite,
)
from udata_catalog.catalog.client import UdataClient
from udata_catalog.catalog.spatial import map_spatial_coverage
from udata_catalog.errors import CatalogError
from udata_catalog.helpers.log import ConsoleLog, init_logging
from udata_catalog.settings import DEFAULT_CATALOG_URL, DOWNLOAD_DIR, prepare_directories

terminal = Console()

plugin = PLUGINS["udata"]


@click.group()
@click.option("--url", envvar="UDATA_URL", default=DEFAULT_CATALOG_URL, show_default=True,
              help="Base URL of the Udata catalog.")
@click.option("--api-key", envvar="UDATA_API_KEY", default="", help="Catalog API key.")
@click.option("--organization", "org_id", default=None, help="Organization id to publish under.")
@click.pass_context
def app(ctx: click.Context, url: str, api_key: str, org_id: str | None) -> None:
    """Udata catalog connector — browse, import and publish datasets."""
    prepare_directories()
    init_logging()
    config = CatalogConfig.from_dict({"url": url, "organization": {"id": org_id} if org_id else None})
    ctx.obj = {"config": config, "secrets": {"apiKey": api_key} if api_key else {}}


# ── Helpers ─────────────────────────────────────────────────────


def _fail(exc: Exception) -> None:
    """Print a connector error and abort."""
    status = getattr(exc, "status", None)
    prefix = f"[{status}] " if status else ""
    terminal.print(f"[red]{prefix}{exc}[/red]")
    raise SystemExit(1) from exc


def _read_json(path: str | None) -> dict:
    if not path:
        return {}
    return json.loads(Path(path).read_text(encoding="utf-8"))


# ── Commands ────────────────────────────────────────────────────


@app.command("plugins")
def list_plugins() -> None:
    """Show registered catalog plugins."""
    terminal.print("[bold]Registered plugins:[/bold]\n")
    for key, plug in PLUGINS.items():
        meta = plug.metadata
        terminal.print(f"  {key:<10} {meta['title']:<10} {', '.join(meta['capabilities'])}")


@app.command()
@click.pass_obj
def check(obj: dict) -> None:
    """Validate the API key (and organization membership)."""
    config: CatalogConfig = obj["config"]
    config.api_key = obj["secrets"].get("apiKey", "")
    try:
        result = plugin.prepare(config, {}, validate=True)
    except CatalogError as exc:
        _fail(exc)

    terminal.print(f"Capabilities: {', '.join(result.capabilities)}")
    terminal.print(f"Stored config: {json.dumps(result.config.to_dict())}", markup=False)
    if result.secrets.get("apiKey"):
        terminal.print("[green]API key accepted.[/green]")
    else:
        terminal.print("[yellow]No API key configured — read-only access.[/yellow]")


@app.command("list")
@click.option("--folder", "-d", default=None, help="Dataset id to list resources of.")
@click.option("--query", "-q", default=None, help="Free-text search.")
@click.option("--page", "-p", default=None, type=int, help="Page number (1-based).")
@click.option("--size", "-n", default=None, type=int, help="Page size.")
@click.option("--all", "show_all", is_flag=True, help="Search the whole catalog.")
@click.option("--only-me", is_flag=True, help="Only datasets owned by the key owner.")
@click.option("--filter-org", default=None, help="Organization id filter (with --all).")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON.")
@click.option(
    "--action", default=None,
    type=click.Choice(["createFolderInRoot", "replaceFolder", "createResource", "replaceResource"]),
    help="List targets for a publication action.",
)
@click.pass_obj
def list_cmd(
    obj: dict, folder: str | None, query: str | None, page: int | None, size: int | None,
    show_all: bool, only_me: bool, filter_org: str | None, as_json: bool, action: str | None,
) -> None:
    """Browse datasets (folders) or the resources of one dataset."""
    params = ListParams(
        q=query, page=page, size=size, show_all=show_all, only_me=only_me,
        organization=filter_org, current_folder_id=folder, action=action,
    )
    try:
        res = plugin.list(obj["config"], obj["secrets"], params, ConsoleLog())
    except CatalogError as exc:
        _fail(exc)

    if as_json:
        click.echo(json.dumps(res.to_dict(), indent=2, ensure_ascii=False))
        return

    if res.path:
        terminal.print(f"[dim]Path: / {' / '.join(f.title for f in res.path)}[/dim]")

    tbl = Table(title=f"{res.count} item(s), showing {len(res.results)}")
    tbl.add_column("ID", style="dim", max_width=52)
    tbl.add_column("Title", max_width=60)
    tbl.add_column("Type", width=8)
    tbl.add_column("Format", width=8)
    for item in res.results:
        tbl.add_row(item.id, item.title[:60], item.type, getattr(item, "format", ""))
    terminal.print(tbl)


@app.command()
@click.argument("resource_id")
@click.option("--dest", default=None, type=click.Path(file_okay=False), help="Download directory.")
@click.option("--dataset-title", is_flag=True, help="Use the dataset title instead of the resource's.")
@click.option("--resource-description", is_flag=True,
              help="Use the resource description instead of the dataset's.")
@click.pass_obj
def get(
    obj: dict, resource_id: str, dest: str | None, dataset_title: bool, resource_description: bool,
) -> None:
    """Download RESOURCE_ID (datasetId:resourceId) with its metadata."""
    import_config = ImportConfig(
        use_dataset_title=dataset_title, use_dataset_description=not resource_description,
    )
    try:
        resource = plugin.get_resource(
            obj["config"], obj["secrets"], resource_id, import_config,
            dest or str(DOWNLOAD_DIR), ConsoleLog(),
        )
    except CatalogError as exc:
        _fail(exc)

    terminal.print(f"[bold]{resource.title}[/bold]")
    terminal.print(f"  File:     {resource.file_path}")
    terminal.print(f"  Format:   {resource.format}  ({resource.mime_type or '?'})")
    terminal.print(f"  License:  {(resource.license or {}).get('title') or '—'}")
    terminal.print(f"  Keywords: {', '.join(resource.keywords) or '—'}")
    terminal.print(f"  Origin:   {resource.origin or '—'}")


@app.command()
@click.argument("dataset_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--site-url", required=True, help="Base URL of the publishing portal.")
@click.option("--template", default=None,
              help="Dataset page URL template, e.g. https://portal/datasets/{slug}.")
@click.option("--publication", "publication_file", default=None, type=click.Path(dir_okay=False),
              help="Publication JSON, read if present and rewritten with the result.")
@click.option(
    "--action", default="createFolderInRoot",
    type=click.Choice(["createFolderInRoot", "replaceFolder", "createResource", "replaceResource"]),
)
@click.pass_obj
def publish(
    obj: dict, dataset_file: str, site_url: str, template: str | None,
    publication_file: str | None, action: str,
) -> None:
    """Publish the local dataset described in DATASET_FILE (JSON)."""
    dataset = _read_json(dataset_file)
    pub_data = _read_json(publication_file) if publication_file and Path(publication_file).exists() else {}
    pub_data.setdefault("action", action)
    publication = Publication.from_dict(pub_data)
    site = PublicationSite(
        title=site_url, url=site_url.rstrip("/"),
        dataset_url_template=template or f"{site_url.rstrip('/')}/datasets/{{slug}}",
    )

    try:
        result = plugin.publish_dataset(
            obj["config"], obj["secrets"], dataset, publication, site, ConsoleLog(),
        )
    except CatalogError as exc:
        _fail(exc)

    out = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if publication_file:
        Path(publication_file).write_text(out, encoding="utf-8")
        terminal.print(f"Publication saved to {publication_file}")
    terminal.print(out)


@app.command()
@click.argument("folder_id")
@click.option("--resource", "resource_id", default=None, help="Only delete this resource.")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete(obj: dict, folder_id: str, resource_id: str | None, yes: bool) -> None:
    """Delete a remote dataset, or one of its resources."""
    target = f"resource {resource_id}" if resource_id else f"dataset {folder_id}"
    if not yes and not click.confirm(f"Delete {target} from {obj['config'].url}?"):
        terminal.print("[dim]Cancelled.[/dim]")
        return
    try:
        plugin.delete_publication(obj["config"], obj["secrets"], folder_id, resource_id, ConsoleLog())
    except CatalogError as exc:
        _fail(exc)
    terminal.print("[bold]Done.[/bold]")


@app.command()
@click.argument("text")
@click.pass_obj
def spatial(obj: dict, text: str) -> None:
    """Resolve a ';'-separated spatial coverage to catalog zones."""
    client = UdataClient(obj["config"].url, obj["secrets"].get("apiKey"))
    result = map_spatial_coverage(client, text, ConsoleLog())

    terminal.print(f"Granularity: {result.granularity or '—'}")
    if not result.zones:
        terminal.print("[yellow]No zone resolved.[/yellow]")
    for zone in result.zones:
        terminal.print(f"  {zone}")


if __name__ == "__main__":
    app()

"""CLI entry point for the record store."""

import json

import click
from loguru import logger

from .app import RecordStoreApp
from .auth import Session
from .config import RecordStoreConfig
from .errors import RecordStoreError
from .models import RequestStatus, RequestType, Role

log = logger.bind(component="cli")

STATUS_CHOICES = click.Choice([s.value for s in RequestStatus], case_sensitive=False)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _app(ctx: click.Context) -> RecordStoreApp:
    """Build the app lazily so --help never touches the database."""
    obj = ctx.obj
    if obj.get("app") is None:
        config: RecordStoreConfig = obj["config"]
        config.setup_logging()
        obj["app"] = RecordStoreApp(config)
        ctx.call_on_close(obj["app"].close)
    return obj["app"]


def _run(ctx: click.Context, fn):
    """Call a service function, mapping domain errors to a clean CLI failure."""
    try:
        return fn(_app(ctx), ctx.obj["session"])
    except RecordStoreError as e:
        log.debug(f"{type(e).__name__}: {e}")
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--user", "user_id", default="local", show_default=True, help="Acting user id.")
@click.option(
    "--role",
    type=click.Choice(["admin", "user"], case_sensitive=False),
    default="user",
    show_default=True,
    help="Role of the acting user; admin actions need --role admin.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, user_id: str, role: str) -> None:
    """Browse MusicBrainz, request music, and hand approved requests to Lidarr."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = RecordStoreConfig(verbose=verbose)
    ctx.obj["session"] = Session(user_id=user_id, role=Role(role.upper()))
    ctx.obj["app"] = None


# -- Catalog --


@main.group()
def search() -> None:
    """Search the MusicBrainz catalog."""


@search.command("artist")
@click.argument("query")
@click.option("--limit", default=25, show_default=True)
@click.option("--offset", default=0, show_default=True)
@click.pass_context
def search_artist(ctx: click.Context, query: str, limit: int, offset: int) -> None:
    """Search artists (first results carry a cover image)."""
    _echo_json(
        _run(ctx, lambda app, s: app.catalog.search_artists(s, query, limit, offset))
    )


@search.command("album")
@click.argument("query")
@click.option("--limit", default=25, show_default=True)
@click.option("--offset", default=0, show_default=True)
@click.pass_context
def search_album(ctx: click.Context, query: str, limit: int, offset: int) -> None:
    """Search albums (release groups)."""
    _echo_json(
        _run(ctx, lambda app, s: app.catalog.search_albums(s, query, limit, offset))
    )


@main.command("artist")
@click.argument("artist_id")
@click.pass_context
def artist(ctx: click.Context, artist_id: str) -> None:
    """Show an artist and its discography, newest first."""
    _echo_json(_run(ctx, lambda app, s: app.catalog.get_artist_detail(s, artist_id)))


# -- Requests --


@main.group()
def request() -> None:
    """Create and manage requests."""


@request.command("add")
@click.argument("music_brainz_id")
@click.option(
    "--type",
    "kind",
    type=click.Choice([t.value for t in RequestType], case_sensitive=False),
    required=True,
)
@click.option("--title", required=True)
@click.option("--artist-name", default=None)
@click.option("--cover-url", default=None)
@click.pass_context
def request_add(
    ctx: click.Context,
    music_brainz_id: str,
    kind: str,
    title: str,
    artist_name: str | None,
    cover_url: str | None,
) -> None:
    """Request an artist or album."""
    created = _run(
        ctx,
        lambda app, s: app.requests.create(
            s, music_brainz_id, kind, title, artist_name, cover_url
        ),
    )
    _echo_json(created.to_dict())


@request.command("list")
@click.option("--status", type=STATUS_CHOICES, default=None)
@click.option("--all", "all_users", is_flag=True, help="All users' requests (admin).")
@click.pass_context
def request_list(ctx: click.Context, status: str | None, all_users: bool) -> None:
    """List requests, newest first."""
    wanted = RequestStatus(status.upper()) if status else None
    if all_users:
        found = _run(ctx, lambda app, s: app.requests.list_all(s, wanted))
    else:
        found = _run(ctx, lambda app, s: app.requests.list_mine(s, wanted))
    _echo_json([r.to_dict() for r in found])


def _set_status(ctx: click.Context, request_id: str, status: str, note: str | None) -> None:
    updated = _run(
        ctx, lambda app, s: app.requests.update_status(s, request_id, status, note)
    )
    _echo_json(updated.to_dict())


@request.command("approve")
@click.argument("request_id")
@click.option("--note", default=None, help="Admin note.")
@click.pass_context
def request_approve(ctx: click.Context, request_id: str, note: str | None) -> None:
    """Approve a request and add it to Lidarr."""
    _set_status(ctx, request_id, RequestStatus.APPROVED, note)


@request.command("reject")
@click.argument("request_id")
@click.option("--note", default=None, help="Admin note.")
@click.pass_context
def request_reject(ctx: click.Context, request_id: str, note: str | None) -> None:
    """Reject a request."""
    _set_status(ctx, request_id, RequestStatus.REJECTED, note)


@request.command("set-status")
@click.argument("request_id")
@click.argument("status", type=STATUS_CHOICES)
@click.option("--note", default=None, help="Admin note.")
@click.pass_context
def request_set_status(
    ctx: click.Context, request_id: str, status: str, note: str | None
) -> None:
    """Set any admin status (PROCESSING, AVAILABLE, ...)."""
    _set_status(ctx, request_id, status, note)


@request.command("delete")
@click.argument("request_id")
@click.pass_context
def request_delete(ctx: click.Context, request_id: str) -> None:
    """Delete a request."""
    _run(ctx, lambda app, s: app.requests.delete(s, request_id))
    _echo_json({"success": True})


@main.command()
@click.pass_context
def reconcile(ctx: click.Context) -> None:
    """Retry Lidarr acquisition for approved requests without a Lidarr id."""
    result = _run(ctx, lambda app, s: app.requests.reconcile(s))
    _echo_json(result.to_dict())


# -- Settings --


@main.group()
def settings() -> None:
    """Lidarr integration settings."""


@settings.command("show")
@click.pass_context
def settings_show(ctx: click.Context) -> None:
    """Show saved settings (API key masked)."""
    _echo_json(_run(ctx, lambda app, s: app.integration.show(s)))


@settings.command("set")
@click.option("--url", default=None, help="Lidarr base URL.")
@click.option("--api-key", default=None, help="Lidarr API key.")
@click.option("--root-folder", default=None, help="Default root folder path.")
@click.option("--quality-profile", type=int, default=None, help="Default quality profile id.")
@click.option("--metadata-profile", type=int, default=None, help="Default metadata profile id.")
@click.pass_context
def settings_set(
    ctx: click.Context,
    url: str | None,
    api_key: str | None,
    root_folder: str | None,
    quality_profile: int | None,
    metadata_profile: int | None,
) -> None:
    """Save Lidarr settings; omitted options are left unchanged."""
    _run(
        ctx,
        lambda app, s: app.integration.save(
            s, url, api_key, root_folder, quality_profile, metadata_profile
        ),
    )
    _echo_json({"success": True})


@settings.command("test")
@click.pass_context
def settings_test(ctx: click.Context) -> None:
    """Test the Lidarr connection and list available options."""
    _echo_json(_run(ctx, lambda app, s: app.integration.test(s)))

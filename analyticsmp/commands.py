# analyticsmp/commands.py
import click
from flask.cli import with_appcontext

from .errors import ConfigurationError
from .utils.analytics import (
    generate_analytics_tracking_url,
    get_analytics_client_id,
    send_analytics_event,
)
from .utils.property_store import DatabasePropertyStore, default_property_store


def _parse_params(ctx, param, values):
    params = {}
    for item in values:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{item}'")
        params[key] = value
    return params


def _store(scope):
    return DatabasePropertyStore(scope.strip()) if scope else default_property_store()


param_option = click.option(
    "--param", "-p", "params", multiple=True, callback=_parse_params,
    help="Measurement Protocol parameter as key=value (repeatable).",
)
scope_option = click.option(
    "--scope", default=None, help="Property scope holding the client ID (default: ANALYTICS_DEFAULT_SCOPE).",
)


@click.command("send-event")
@param_option
@scope_option
@with_appcontext
def send_event(params, scope):
    try:
        sent = send_analytics_event(params, _store(scope))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    click.echo(f"Sent {sent['t']} hit for client {sent['cid']}")


@click.command("tracking-url")
@param_option
@scope_option
@with_appcontext
def tracking_url(params, scope):
    try:
        url = generate_analytics_tracking_url(params, _store(scope))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    click.echo(url)


@click.command("client-id")
@scope_option
@with_appcontext
def client_id(scope):
    click.echo(get_analytics_client_id(_store(scope)))

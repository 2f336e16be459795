"""CLI entry point for cross-keychain.

Commands:
    - get: Retrieve a password or credential
    - set: Store a password
    - delete (del): Remove a password
    - diagnose: Print configuration and backend details
    - list-backends: List backends detected on this host
    - disable: Persistently configure the null backend

Example:
    $ cross-keychain set github alice
    $ cross-keychain get github alice
    $ cross-keychain --backend file get github --mode creds --output json
"""

import json
import sys
from dataclasses import asdict

import click
import structlog

from cross_keychain.backends import Credential
from cross_keychain.exceptions import KeyringError
from cross_keychain.keychain import (
    delete_password,
    diagnose,
    disable,
    get_credential,
    get_password,
    list_backends,
    set_password,
    use_backend,
)
from cross_keychain.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

# Commands that must not trigger backend selection
COMMANDS_WITHOUT_BACKEND = ["list-backends", "disable"]

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _fail(error: KeyringError) -> None:
    click.echo(click.style(f"Error: {error.message}", fg="red"), err=True)
    if error.suggestion:
        click.echo(click.style(f"Suggestion: {error.suggestion}", fg="yellow"), err=True)
    sys.exit(1)


@click.group()
@click.option("--backend", "backend_id", help="Force a specific backend id")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, backend_id: str | None, log_level: str) -> None:
    """cross-keychain: store and retrieve passwords from the best available backend."""
    configure_logging(log_level)

    if backend_id and ctx.invoked_subcommand not in COMMANDS_WITHOUT_BACKEND:
        try:
            use_backend(backend_id)
        except KeyringError as e:
            _fail(e)


def _emit_credential(credential: Credential, output: str, include_username: bool) -> None:
    if output == "json":
        click.echo(json.dumps(asdict(credential)))
        return
    if include_username:
        click.echo(credential.username)
    click.echo(credential.password)


@cli.command(name="get")
@click.argument("service")
@click.argument("account", required=False)
@click.option(
    "--mode",
    type=click.Choice(["password", "creds"]),
    default="password",
    show_default=True,
    help="Print only the password, or the username and password",
)
@click.option(
    "--output",
    type=click.Choice(["plain", "json"]),
    default="plain",
    show_default=True,
    help="Output format",
)
def get_command(service: str, account: str | None, mode: str, output: str) -> None:
    """Retrieve a password or credential for SERVICE.

    ACCOUNT is required in password mode and optional in creds mode.

    Examples:

        cross-keychain get github alice

        cross-keychain get github --mode creds --output json
    """
    try:
        if mode == "password":
            if not account:
                raise click.UsageError("'get' in password mode requires an account")
            password = get_password(service, account)
            if password is None:
                click.echo(
                    f"Password not found for service '{service}' and user '{account}'.", err=True
                )
                sys.exit(1)
            _emit_credential(Credential(username=account, password=password), output, False)
            return

        credential = get_credential(service, account)
        if credential is None:
            if account:
                message = f"Credential not found for service '{service}' and user '{account}'."
            else:
                message = f"No credentials found for service '{service}'."
            click.echo(message, err=True)
            sys.exit(1)
        _emit_credential(credential, output, True)

    except KeyringError as e:
        _fail(e)


@cli.command(name="set")
@click.argument("service")
@click.argument("account")
@click.option("--password-stdin", is_flag=True, help="Read the password from stdin")
def set_command(service: str, account: str, password_stdin: bool) -> None:
    """Store a password for SERVICE and ACCOUNT.

    Examples:

        cross-keychain set github alice

        echo "s3cr3t" | cross-keychain set github alice --password-stdin
    """
    if password_stdin:
        password = click.get_text_stream("stdin").read().rstrip("\r\n")
    else:
        password = click.prompt(
            f"Password for '{account}' in '{service}'", hide_input=True, default="", show_default=False
        )

    try:
        set_password(service, account, password)
    except KeyringError as e:
        _fail(e)

    click.echo("Password stored")


@cli.command(name="delete")
@click.argument("service")
@click.argument("account")
def delete_command(service: str, account: str) -> None:
    """Delete the password for SERVICE and ACCOUNT."""
    try:
        delete_password(service, account)
    except KeyringError as e:
        _fail(e)

    click.echo("Password deleted")


cli.add_command(delete_command, name="del")


@cli.command(name="diagnose")
def diagnose_command() -> None:
    """Print configuration paths and active backend details as JSON."""
    try:
        report = diagnose()
    except KeyringError as e:
        _fail(e)

    click.echo(json.dumps(report, indent=2, default=str))


@cli.command(name="list-backends")
def list_backends_command() -> None:
    """List all backends detected on this host."""
    try:
        backends = list_backends()
    except KeyringError as e:
        _fail(e)

    for backend in backends:
        click.echo(f"{backend.id}\t(priority: {backend.priority})\t{backend.name}")


@cli.command(name="disable")
def disable_command() -> None:
    """Persistently configure the null backend."""
    try:
        path = disable()
    except KeyringError as e:
        _fail(e)

    log.debug("disable_written", config_path=str(path))
    click.echo("Null backend configured")


if __name__ == "__main__":
    cli()

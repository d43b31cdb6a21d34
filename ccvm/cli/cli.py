"""Command-line entry point for ccvm.

The commands are a thin layer over :mod:`ccvm.core.profiles`; failures are
classified and rendered by the reporter before exiting with status 1.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, NoReturn, Optional, TypeVar

import click
from rich.table import Table

from ccvm import __version__
from ccvm.cli.reporter import Reporter
from ccvm.core.classifier import classify
from ccvm.core.errors import CcvmError
from ccvm.core.paths import DirectoryContext, EnvironmentView, resolve_context
from ccvm.core.profiles import (
    create_profile,
    get_default_provider,
    init_store,
    list_profiles,
    read_profile,
    remove_profile,
    set_default_provider,
    update_profile,
)
from ccvm.utils.log import get_logger, init_logger
from ccvm.utils.output_utils import mask_secret, truncate_middle


logger = get_logger()

T = TypeVar("T")


@dataclass
class AppState:
    env: EnvironmentView
    reporter: Reporter
    directories: Optional[DirectoryContext] = None


def _fail(state: AppState, exc: Exception, action: str) -> NoReturn:
    context = getattr(exc, "path", None) or action
    config_dir = state.directories.config_dir if state.directories else None
    classified = classify(exc, context, config_dir=config_dir)
    logger.debug(
        "[cli] Command failed",
        extra={"action": action, "category": classified.category.value, "code": classified.code},
    )
    state.reporter.report(classified)
    raise click.exceptions.Exit(1)


def _guarded(state: AppState, action: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except (CcvmError, OSError) as exc:
        _fail(state, exc, action)


def _directories(state: AppState) -> DirectoryContext:
    if state.directories is None:
        state.directories = _guarded(
            state, "resolve configuration directory", lambda: resolve_context(state.env)
        )
    return state.directories


@click.group(help="Manage API provider profiles.")
@click.version_option(__version__, prog_name="ccvm")
@click.option("--verbose", is_flag=True, help="Show technical details for errors.")
@click.option("--lang", "locale", default=None, help="Message language (en, zh).")
@click.option("--debug-log", is_flag=True, help="Write a debug log under the config directory.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, locale: Optional[str], debug_log: bool) -> None:
    env = EnvironmentView.from_environ()
    state = AppState(env=env, reporter=Reporter(locale=locale or env.locale, verbose=verbose))
    ctx.obj = state
    log_dir = _directories(state).logs_dir if debug_log else None
    _guarded(
        state, "open debug log", lambda: init_logger(log_dir=log_dir, level_name=env.log_level)
    )


@cli.group(name="provider", help="Add, edit, list and remove provider profiles.")
@click.pass_obj
def provider_group(state: AppState) -> None:
    directories = _directories(state)
    _guarded(state, "initialize configuration directory", lambda: init_store(directories))


@provider_group.command(name="add")
@click.argument("alias")
@click.option("--url", "base_url", prompt="API base URL", help="Provider base URL.")
@click.option("--key", "api_key", prompt="API key", hide_input=True, help="Provider API key.")
@click.option("--timeout", type=int, default=None, help="Request timeout in milliseconds.")
@click.option("--overwrite", is_flag=True, help="Replace an existing profile.")
@click.option("--default", "make_default", is_flag=True, help="Also make it the default provider.")
@click.pass_obj
def add_provider(
    state: AppState,
    alias: str,
    base_url: str,
    api_key: str,
    timeout: Optional[int],
    overwrite: bool,
    make_default: bool,
) -> None:
    directories = _directories(state)
    profile = _guarded(
        state,
        f"add provider {alias}",
        lambda: create_profile(
            directories, alias, base_url, api_key, timeout, overwrite=overwrite
        ),
    )
    if make_default:
        _guarded(
            state, f"set default provider {alias}", lambda: set_default_provider(directories, alias)
        )
    state.reporter.success(
        f"Provider '{profile.alias}' saved",
        [f"Base URL: {profile.base_url}", f"API key: {mask_secret(profile.api_key)}"],
    )


def _profile_row(state: AppState, alias: str, default_alias: Optional[str]) -> dict[str, Any]:
    profile = read_profile(_directories(state), alias)
    return {
        "alias": profile.alias,
        "baseURL": profile.base_url,
        "timeout": profile.effective_timeout,
        "isDefault": profile.alias == default_alias,
        "lastUsed": profile.last_used,
    }


@provider_group.command(name="list")
@click.option("--json", "json_output", is_flag=True, help="Output machine-readable JSON.")
@click.pass_obj
def list_providers(state: AppState, json_output: bool) -> None:
    directories = _directories(state)
    aliases = _guarded(state, "list providers", lambda: list_profiles(directories))
    default_alias = _guarded(state, "read settings", lambda: get_default_provider(directories))
    rows = [
        _guarded(
            state,
            f"read provider {alias}",
            lambda alias=alias: _profile_row(state, alias, default_alias),
        )
        for alias in sorted(aliases, key=str.lower)
    ]
    if json_output:
        click.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return
    if not rows:
        state.reporter.info(
            "No providers configured.", ["Add one with 'ccvm provider add <alias>'"]
        )
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("")
    table.add_column("Alias")
    table.add_column("Base URL")
    table.add_column("Timeout (ms)", justify="right")
    for row in rows:
        table.add_row(
            "*" if row["isDefault"] else "",
            row["alias"],
            truncate_middle(row["baseURL"], 48),
            str(row["timeout"]),
        )
    state.reporter.console.print(table)


@provider_group.command(name="show")
@click.argument("alias")
@click.option("--json", "json_output", is_flag=True, help="Output machine-readable JSON.")
@click.option("--reveal", is_flag=True, help="Print the API key unmasked.")
@click.pass_obj
def show_provider(state: AppState, alias: str, json_output: bool, reveal: bool) -> None:
    directories = _directories(state)
    profile = _guarded(state, f"read provider {alias}", lambda: read_profile(directories, alias))
    payload = profile.to_file_payload()
    if not reveal:
        payload["apiKey"] = mask_secret(profile.api_key)
    payload["timeout"] = profile.effective_timeout
    if json_output:
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    state.reporter.info(
        f"Provider '{profile.alias}'",
        [f"{key}: {value}" for key, value in payload.items() if key != "alias"],
    )


@provider_group.command(name="edit")
@click.argument("alias")
@click.option("--url", "base_url", default=None, help="New base URL.")
@click.option("--key", "api_key", default=None, help="New API key; omit to keep the current one.")
@click.option("--timeout", type=int, default=None, help="New timeout in milliseconds.")
@click.pass_obj
def edit_provider(
    state: AppState,
    alias: str,
    base_url: Optional[str],
    api_key: Optional[str],
    timeout: Optional[int],
) -> None:
    directories = _directories(state)
    if base_url is None and not api_key and timeout is None:
        state.reporter.warning("Nothing to change.", ["Pass --url, --key or --timeout"])
        return
    profile = _guarded(
        state,
        f"edit provider {alias}",
        lambda: update_profile(
            directories, alias, base_url=base_url, api_key=api_key, timeout=timeout
        ),
    )
    state.reporter.success(f"Provider '{profile.alias}' updated", [f"Base URL: {profile.base_url}"])


@provider_group.command(name="remove")
@click.argument("alias")
@click.option("--missing-ok", is_flag=True, help="Do not fail if the provider does not exist.")
@click.pass_obj
def remove_provider(state: AppState, alias: str, missing_ok: bool) -> None:
    directories = _directories(state)
    cleared_default = _guarded(
        state,
        f"remove provider {alias}",
        lambda: remove_profile(directories, alias, missing_ok=missing_ok),
    )
    details = ["The default provider has been cleared"] if cleared_default else []
    state.reporter.success(f"Provider '{alias}' removed", details)


@provider_group.command(name="use")
@click.argument("alias")
@click.pass_obj
def use_provider(state: AppState, alias: str) -> None:
    directories = _directories(state)
    _guarded(
        state, f"set default provider {alias}", lambda: set_default_provider(directories, alias)
    )
    state.reporter.success(f"Default provider set to '{alias}'")


@provider_group.command(name="current")
@click.pass_obj
def current_provider(state: AppState) -> None:
    directories = _directories(state)
    alias = _guarded(state, "read settings", lambda: get_default_provider(directories))
    if alias is None:
        state.reporter.warning(
            "No default provider set.", ["Choose one with 'ccvm provider use <alias>'"]
        )
        return
    click.echo(alias)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

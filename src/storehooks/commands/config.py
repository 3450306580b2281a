"""Config commands -- inspect the effective configuration and edit allow-lists.

Provides the ``storehooks config`` sub-command group. The configuration is
resolved from CLI flags, ``STOREHOOKS_*`` environment variables,
``./storehooks.json`` and the global config file, in that order.
"""

from __future__ import annotations

from typing import Optional

import typer

from storehooks.output import error, format_response, info


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the store base URL."
    ),
    database: Optional[str] = typer.Option(
        None, "--database", "-d", help="Override the database name."
    ),
) -> None:
    """Show the resolved configuration.

    Example::

        storehooks config show
        storehooks --json config show --database reporting
    """
    from storehooks.config import get_config_dir, resolve_config

    config = resolve_config(cli_base_url=base_url, cli_database=database)
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("allow")
def config_allow(
    collection: str = typer.Argument(help="Collection name."),
    methods: Optional[list[str]] = typer.Argument(
        None, help="Verbs the collection may run. Omit with --all to allow every verb."
    ),
    allow_all: bool = typer.Option(
        False, "--all", help="Remove the allow-list so every verb runs."
    ),
) -> None:
    """Persist the verb allow-list of a collection in the global config.

    Collections built with ``Collection.from_config`` pick the list up as
    their ``change_data_methods``.

    Raises:
        typer.Exit: With code 2 for unknown verbs or when neither verbs nor
            ``--all`` are given.

    Example::

        storehooks config allow users insert_one find_one_and_upsert
        storehooks config allow users --all
    """
    from storehooks.config import load_global_config, save_global_config
    from storehooks.models import CollectionOptions
    from storehooks.operations import OPERATIONS

    if allow_all == bool(methods):
        error("Pass either verb names or --all")
        raise typer.Exit(code=2)

    unknown = [m for m in methods or [] if m not in OPERATIONS]
    if unknown:
        error(f"Unknown verb(s): {', '.join(unknown)}")
        raise typer.Exit(code=2)

    config = load_global_config()
    if allow_all:
        config.collections.pop(collection, None)
    else:
        config.collections[collection] = CollectionOptions(change_data_methods=list(methods))
    save_global_config(config)

    if allow_all:
        info(f"{collection}: every verb allowed")
    else:
        info(f"{collection}: allowed {', '.join(methods)}")

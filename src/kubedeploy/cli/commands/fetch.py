"""CLI command for selector-driven resource inventory."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.markup import escape

from kubedeploy.cli.commands.base import (
    OutputFormat,
    OutputOption,
    console,
    handle_k8s_error,
    load_data_file,
    print_resources,
)
from kubedeploy.integrations.kubernetes.exceptions import KubernetesError
from kubedeploy.services.kubernetes.selector import parse_selectors

if TYPE_CHECKING:
    from kubedeploy.services.kubernetes.selector import ResourceFetchManager

SelectorsOption = Annotated[
    Path | None,
    typer.Option(
        "--selectors",
        "-s",
        help="YAML or JSON list of resource selectors (default: built-in rules)",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


def register_fetch_commands(
    app: typer.Typer,
    get_manager: Callable[[], ResourceFetchManager],
) -> None:
    """Register the fetch command with the CLI app."""

    @app.command("fetch")
    def fetch(
        selectors: SelectorsOption = None,
        output: OutputOption = OutputFormat.YAML,
    ) -> None:
        """Export cluster resources chosen by a selector pipeline.

        Each resource is decided by the first selector that matches it;
        resources no selector matches are left out. Server-populated
        fields are stripped so the output can be re-applied.

        Examples:
            kubedeploy fetch
            kubedeploy fetch --selectors selectors.yaml -o json
        """
        try:
            parsed = None
            if selectors is not None:
                data = load_data_file(selectors)
                if not isinstance(data, list):
                    raise ValueError(f"{selectors} does not contain a list of selectors")
                parsed = parse_selectors(data)

            manager = get_manager()
            resources = manager.fetch(parsed)

            if not resources:
                console.print("[yellow]No resources selected[/yellow]")
                return
            print_resources(resources, output)

        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from None
        except KubernetesError as e:
            handle_k8s_error(e)

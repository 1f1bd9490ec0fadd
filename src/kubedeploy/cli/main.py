"""Main CLI entry point using Typer."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from kubedeploy import __version__
from kubedeploy.cli.commands import register_deploy_commands, register_fetch_commands
from kubedeploy.integrations.kubernetes.client import KubernetesClient
from kubedeploy.integrations.kubernetes.config import KubernetesConfig
from kubedeploy.logging.config import configure_logging
from kubedeploy.services.kubernetes import ApplicationManager, ResourceFetchManager

app = typer.Typer(
    name="kubedeploy",
    help="Reconcile application workloads into Kubernetes clusters.",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


class _Session:
    """Configuration and client shared by the commands of one invocation."""

    def __init__(self) -> None:
        self._config: KubernetesConfig | None = None
        self._client: KubernetesClient | None = None

    @property
    def config(self) -> KubernetesConfig:
        if self._config is None:
            self._config = KubernetesConfig.from_env()
        return self._config

    @property
    def client(self) -> KubernetesClient:
        if self._client is None:
            self._client = KubernetesClient(self.config)
        return self._client


_session = _Session()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"kubedeploy version {__version__}")
        raise typer.Exit()


def get_application_manager() -> ApplicationManager:
    return ApplicationManager(_session.client, _session.config.deploy)


def get_fetch_manager() -> ResourceFetchManager:
    return ResourceFetchManager(_session.client)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        help="Also write JSON logs to this file.",
        envvar="KUBEDEPLOY_LOG_FILE",
    ),
) -> None:
    """kubedeploy - Reconcile application workloads into Kubernetes clusters."""
    configure_logging(verbose=verbose, debug=debug, log_file=log_file)


# Register subcommands
register_deploy_commands(app, get_application_manager)
register_fetch_commands(app, get_fetch_manager)


if __name__ == "__main__":
    app()

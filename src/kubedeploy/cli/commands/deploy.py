"""CLI commands for application reconciliation.

Provides deploy, undeploy and rollback commands for application data
files.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from kubedeploy.cli.commands.base import (
    DataFileArgument,
    NamespaceOption,
    OutputFormat,
    OutputOption,
    WorkspaceOption,
    console,
    handle_k8s_error,
    load_data_file,
    print_resources,
)
from kubedeploy.integrations.kubernetes.exceptions import KubernetesError
from kubedeploy.integrations.kubernetes.models import Application, DeleteRequest
from kubedeploy.services.kubernetes.templates import endpoint_base_url

if TYPE_CHECKING:
    from kubedeploy.services.kubernetes.application_manager import ApplicationManager

# ---------------------------------------------------------------------------
# Command-specific options
# ---------------------------------------------------------------------------

PreviousOption = Annotated[
    Path | None,
    typer.Option(
        "--previous",
        "-p",
        help="Data file of the previously deployed application",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
]

AppNameArgument = Annotated[str, typer.Argument(help="Application name")]

SummaryOutputOption = Annotated[
    OutputFormat | None,
    typer.Option(
        "--output",
        "-o",
        help="Print the applied resources as yaml or json instead of a summary",
        case_sensitive=False,
    ),
]


def _load_application(path: Path) -> Application:
    """Load and validate an application data file.

    Raises:
        ValueError: If the file cannot be parsed or is not a valid application.
    """
    data = load_data_file(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain an application mapping")
    try:
        return Application.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid application in {path}:\n{e}") from e


def _print_summary(title: str, resources: list[dict[str, Any]]) -> None:
    table = Table(title=title)
    table.add_column("Kind")
    table.add_column("Namespace")
    table.add_column("Name")
    for resource in resources:
        metadata = resource.get("metadata") or {}
        table.add_row(
            str(resource.get("kind", "")),
            str(metadata.get("namespace", "")),
            str(metadata.get("name", "")),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Command registration
# ---------------------------------------------------------------------------


def register_deploy_commands(
    app: typer.Typer,
    get_manager: Callable[[], ApplicationManager],
) -> None:
    """Register application commands with the CLI app."""

    # -----------------------------------------------------------------
    # deploy
    # -----------------------------------------------------------------

    @app.command("deploy")
    def deploy(
        path: DataFileArgument,
        output: SummaryOutputOption = None,
    ) -> None:
        """Create or update every resource of an application.

        Resources are applied in order: namespace, RBAC, service, secrets,
        deployment and ingress. Applications outside the configured
        environment or namespaces are skipped.

        Examples:
            kubedeploy deploy app.yaml
            kubedeploy deploy app.yaml -o json
        """
        try:
            application = _load_application(path)
            manager = get_manager()
            verified = manager.verify_deploy(application)
            if verified is None:
                console.print(
                    f"[yellow]Skipped[/yellow] {application.slug}: not managed by this deployer"
                )
                return

            applied = manager.upsert(verified)

            if output is not None:
                print_resources(applied, output)
                return
            _print_summary(f"Deployed {verified.slug}", applied)
            if verified.path:
                console.print(f"Endpoint: {endpoint_base_url(verified)}")

        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from None
        except KubernetesError as e:
            handle_k8s_error(e)

    # -----------------------------------------------------------------
    # undeploy
    # -----------------------------------------------------------------

    @app.command("undeploy")
    def undeploy(
        name: AppNameArgument,
        namespace: NamespaceOption,
        workspace: WorkspaceOption,
    ) -> None:
        """Delete every resource of an application.

        The namespace itself is left in place. Resources that are already
        gone are ignored.

        Examples:
            kubedeploy undeploy api -n shop -w ws-1
        """
        try:
            manager = get_manager()
            request = DeleteRequest(name=name, ns=namespace, workspace_id=workspace)
            deleted = manager.delete(request)

            if not deleted:
                console.print(f"[yellow]Nothing to delete[/yellow] for {request.slug}")
                return
            _print_summary(f"Deleted {request.slug}", deleted)

        except KubernetesError as e:
            handle_k8s_error(e)

    # -----------------------------------------------------------------
    # rollback
    # -----------------------------------------------------------------

    @app.command("rollback")
    def rollback(
        name: AppNameArgument,
        namespace: NamespaceOption,
        workspace: WorkspaceOption,
        previous: PreviousOption = None,
        output: OutputOption = OutputFormat.YAML,
    ) -> None:
        """Roll an application's Deployment back to its previous revision.

        With ``--previous`` the Deployment is rebuilt from that data file.
        Otherwise the pod template of the prior ReplicaSet is restored.

        Examples:
            kubedeploy rollback api -n shop -w ws-1
            kubedeploy rollback api -n shop -w ws-1 --previous app-v1.yaml
        """
        try:
            manager = get_manager()
            request = DeleteRequest(name=name, ns=namespace, workspace_id=workspace)
            previous_app = _load_application(previous) if previous is not None else None
            result = manager.rollback(request, previous_app)

            if result is None:
                console.print(f"[yellow]No deployment found[/yellow] for {request.slug}")
                return
            print_resources([result], output)

        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from None
        except KubernetesError as e:
            handle_k8s_error(e)

"""Base utilities for kubedeploy CLI commands.

Provides common Typer options, data file loading, output rendering and
error handling shared by all commands.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich.console import Console

from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesDeleteError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesReconcileError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

# Shared console instance
console = Console()


class OutputFormat(str, Enum):
    """Output formats for resource specs."""

    YAML = "yaml"
    JSON = "json"


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

OutputOption = Annotated[
    OutputFormat,
    typer.Option(
        "--output",
        "-o",
        help="Output format: yaml or json",
        case_sensitive=False,
    ),
]

NamespaceOption = Annotated[
    str,
    typer.Option(
        "--namespace",
        "-n",
        help="Namespace the application is deployed in",
    ),
]

WorkspaceOption = Annotated[
    str,
    typer.Option(
        "--workspace",
        "-w",
        help="Workspace that owns the application",
    ),
]

DataFileArgument = Annotated[
    Path,
    typer.Argument(
        help="YAML or JSON file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


# =============================================================================
# Input / Output
# =============================================================================


def load_data_file(path: Path) -> Any:
    """Load a YAML or JSON document from ``path``.

    Raises:
        ValueError: If the file is not valid YAML.
    """
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Cannot parse {path}: {e}") from e


def print_resources(resources: list[dict[str, Any]], output: OutputFormat) -> None:
    """Print resource specs as a YAML stream or a JSON list."""
    if output == OutputFormat.JSON:
        text = json.dumps(resources, indent=2, default=str)
    else:
        text = yaml.safe_dump_all(resources, default_flow_style=False, sort_keys=False)
    console.print(text, markup=False, highlight=False, soft_wrap=True)


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> None:
    """Handle Kubernetes errors with user-friendly output.

    Args:
        error: The Kubernetes error to handle.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        console.print(
            "\n[dim]Hint: Check that your kubeconfig is valid and the cluster is reachable.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")
        console.print("\n[dim]Hint: Check your credentials, token, or RBAC permissions.[/dim]")

    elif isinstance(error, KubernetesReconcileError):
        console.print(f"[red]Error:[/red] Deploy of {error.app} failed at stage '{error.stage}'")
        console.print(f"  {error.message}", markup=False)

    elif isinstance(error, KubernetesDeleteError):
        console.print(f"[red]Error:[/red] Undeploy of {error.app} was incomplete")
        for message in error.errors:
            console.print(f"  - {message}", markup=False)

    elif isinstance(error, KubernetesNotFoundError):
        console.print("[red]Error:[/red] Resource not found")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesValidationError):
        console.print("[red]Error:[/red] Validation failed")
        console.print(f"  {error.message}")
        if error.validation_errors:
            console.print("\n  Field errors:")
            for field, err in error.validation_errors.items():
                console.print(f"    - {field}: {err}")

    elif isinstance(error, KubernetesConflictError):
        console.print("[red]Error:[/red] Resource conflict")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesTimeoutError):
        console.print("[red]Error:[/red] Operation timed out")
        console.print(f"  {error.message}")
        console.print("\n[dim]Hint: Try increasing the timeout with KUBEDEPLOY_TIMEOUT.[/dim]")

    else:
        console.print(f"[red]Error:[/red] {error.message}")
        if error.status_code:
            console.print(f"  HTTP Status: {error.status_code}")

    raise typer.Exit(1)

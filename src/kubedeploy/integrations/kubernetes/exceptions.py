"""Kubernetes integration custom exceptions."""

from __future__ import annotations

from typing import Any


class KubernetesError(Exception):
    """Base exception for Kubernetes operations.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code from Kubernetes API (if applicable).
        resource_type: Kind of resource involved (e.g., "Service", "Deployment").
        resource_name: Name of the resource involved.
        namespace: Namespace of the resource (if applicable).
        body: Decoded response body returned by the API server, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
        body: Any = None,
    ) -> None:
        """Initialize KubernetesError.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code from Kubernetes API.
            resource_type: Kind of resource involved.
            resource_name: Name of the resource involved.
            namespace: Namespace of the resource.
            body: Decoded API response body for diagnostics.
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace
        self.body = body

    def __str__(self) -> str:
        """Return string representation of the error."""
        parts = [self.message]
        if self.status_code:
            parts.append(f"(status: {self.status_code})")
        if self.resource_type and self.resource_name:
            loc = f"[{self.resource_type}/{self.resource_name}"
            if self.namespace:
                loc += f" in {self.namespace}"
            loc += "]"
            parts.append(loc)
        return " ".join(parts)


class KubernetesConnectionError(KubernetesError):
    """Exception raised when the Kubernetes API server cannot be reached.

    Covers kubeconfig loading failures and transport-level errors such as
    refused connections and dropped sockets.
    """

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message=message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """Exception raised on 401/403 responses."""

    def __init__(
        self,
        message: str = "Kubernetes authentication/authorization failed",
        status_code: int | None = 401,
        reason: str | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, body=body)
        self.reason = reason


class KubernetesNotFoundError(KubernetesError):
    """Exception raised when a requested Kubernetes resource does not exist."""

    def __init__(
        self,
        message: str = "Kubernetes resource not found",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
        body: Any = None,
    ) -> None:
        """Initialize KubernetesNotFoundError.

        Args:
            message: Human-readable error message.
            resource_type: Kind of resource.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.
            body: Decoded API response body.
        """
        if resource_type and resource_name:
            message = f"{resource_type} '{resource_name}' not found"
            if namespace:
                message += f" in namespace '{namespace}'"
        super().__init__(
            message=message,
            status_code=404,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
            body=body,
        )


class KubernetesValidationError(KubernetesError):
    """Exception raised when the API server rejects a resource spec (400/422)."""

    def __init__(
        self,
        message: str = "Invalid resource specification",
        validation_errors: dict[str, Any] | None = None,
        status_code: int | None = 422,
        body: Any = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, body=body)
        self.validation_errors = validation_errors or {}


class KubernetesConflictError(KubernetesError):
    """Exception raised on a 409 response.

    The resource already exists or was modified by another client.
    """

    def __init__(
        self,
        message: str = "Resource conflict",
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
        body: Any = None,
    ) -> None:
        if resource_type and resource_name:
            message = f"{resource_type} '{resource_name}' already exists"
            if namespace:
                message += f" in namespace '{namespace}'"
        super().__init__(
            message=message,
            status_code=409,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
            body=body,
        )


class KubernetesTimeoutError(KubernetesError):
    """Exception raised when a Kubernetes request times out."""

    def __init__(
        self,
        message: str = "Kubernetes operation timed out",
        timeout_seconds: int | None = None,
    ) -> None:
        if timeout_seconds:
            message = f"{message} (after {timeout_seconds}s)"
        super().__init__(message=message)
        self.timeout_seconds = timeout_seconds


class KubernetesSpecError(KubernetesError, ValueError):
    """Exception raised for a malformed resource descriptor.

    Raised locally, before any request is sent, when ``kind``,
    ``apiVersion`` or a required ``metadata.name`` is missing.
    """

    def __init__(self, message: str, spec: Any = None) -> None:
        super().__init__(message=message)
        self.spec = spec


class KubernetesSelectorError(KubernetesError, ValueError):
    """Exception raised for an invalid resource selector configuration."""


class KubernetesReconcileError(KubernetesError):
    """Exception raised when upserting an application fails.

    Attributes:
        app: Application slug, ``namespace/name``.
        stage: Reconciliation stage that failed (e.g., "service").
    """

    def __init__(self, app: str, stage: str, cause: Exception) -> None:
        message = f"Failed to upsert '{app}' at stage '{stage}': {cause}"
        super().__init__(
            message=message,
            status_code=getattr(cause, "status_code", None),
            body=getattr(cause, "body", None),
        )
        self.app = app
        self.stage = stage


class KubernetesDeleteError(KubernetesError):
    """Exception raised when one or more application resources fail to delete.

    Attributes:
        app: Application slug, ``namespace/name``.
        errors: One message per failed delete stage, in attempt order.
    """

    def __init__(self, app: str, errors: list[str]) -> None:
        message = f"Failed to delete application '{app}': {'; '.join(errors)}"
        super().__init__(message=message)
        self.app = app
        self.errors = list(errors)

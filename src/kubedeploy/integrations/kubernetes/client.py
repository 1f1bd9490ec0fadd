"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with kubeconfig/in-cluster
credential loading, a lazily created ``ApiClient``, retry logic for
transient failures, and consistent error translation.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import ApiClient

    from kubedeploy.integrations.kubernetes.config import KubernetesConfig

logger = structlog.get_logger()

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient_error(e: BaseException) -> bool:
    """Return True if a failed request is worth retrying.

    Transport failures, timeouts, throttling and server-side errors are
    transient; everything else (including 404 and 409) is not.
    """
    if isinstance(e, KubernetesConnectionError | KubernetesTimeoutError):
        return True
    if isinstance(e, KubernetesError) and e.status_code is not None:
        return e.status_code in RETRYABLE_STATUS_CODES or e.status_code >= 500
    return False


def _decode_body(body: Any) -> Any:
    """Decode an ApiException body into JSON when possible."""
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


class KubernetesClient:
    """Kubernetes API client.

    Example:
        ```python
        from kubedeploy.integrations.kubernetes import KubernetesClient, KubernetesConfig

        with KubernetesClient(KubernetesConfig.from_env()) as client:
            objects = KubernetesObjectApi(client)
            objects.read({"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "default"}})
        ```
    """

    def __init__(self, config: KubernetesConfig) -> None:
        """Initialize the client and load credentials.

        Tries the kubeconfig first and falls back to in-cluster service
        account credentials.

        Args:
            config: Complete kubedeploy configuration.
        """
        self._config = config
        self._retries = config.defaults.retry_attempts
        self._current_context: str | None = None
        self._api_client: ApiClient | None = None

        self._load_config()

        logger.info(
            "Kubernetes client initialized",
            context=self._current_context,
            default_namespace=config.get_active_namespace(),
        )

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        context = self._config.get_active_context()
        kubeconfig_path = self._config.get_active_kubeconfig()

        try:
            config.load_kube_config(config_file=kubeconfig_path, context=context)
            self._current_context = context or "current-context"
            logger.debug("loaded_kubeconfig", context=context, kubeconfig=kubeconfig_path)
        except ConfigException:
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

        self._api_client = None

    @property
    def api_client(self) -> ApiClient:
        """Get the shared ``ApiClient`` used for raw REST calls."""
        if self._api_client is None:
            from kubernetes.client import ApiClient

            self._api_client = ApiClient()
        return self._api_client

    def get_current_context(self) -> str:
        """Get the loaded context name, or 'in-cluster' inside a pod."""
        return self._current_context or "unknown"

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes/urllib3 exception to a KubernetesError.

        The decoded response body is attached to the returned error and
        its ``message`` field, when present, is preferred over the HTTP
        reason phrase.

        Args:
            e: The original exception.
            resource_type: Kind of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import HTTPError, TimeoutError

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, TimeoutError):
            return KubernetesTimeoutError(message=f"Kubernetes API request timed out: {e}")

        if isinstance(e, HTTPError):
            return KubernetesConnectionError(
                message=f"Kubernetes API request failed: {e}",
                original_error=e,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status
        body = _decode_body(e.body)
        detail = body.get("message") if isinstance(body, dict) else None

        if status in (401, 403):
            return KubernetesAuthError(
                message=detail or e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
                body=body,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                body=body,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                body=body,
            )

        if status in (400, 422):
            causes = body.get("details", {}).get("causes", []) if isinstance(body, dict) else []
            return KubernetesValidationError(
                message=detail or e.reason or "Validation failed",
                validation_errors={
                    c.get("field", ""): c.get("message", "") for c in causes if isinstance(c, dict)
                },
                status_code=status,
                body=body,
            )

        return KubernetesError(
            message=detail or e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
            body=body,
        )

    # =========================================================================
    # Retry Decorator
    # =========================================================================

    def make_retry_decorator(self, description: str = "") -> Any:
        """Create a retry decorator for transient failures.

        Args:
            description: Short description of the request, used in logs.

        Returns:
            A tenacity retry decorator configured with exponential backoff.
        """
        defaults = self._config.defaults

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.debug(
                "retrying_request",
                request=description,
                attempt=retry_state.attempt_number,
                error=str(error),
            )

        return retry(
            retry=retry_if_exception(is_transient_error),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(
                multiplier=defaults.retry_min_wait,
                min=defaults.retry_min_wait,
                max=defaults.retry_max_wait,
            ),
            before_sleep=log_retry,
            reraise=True,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def timeout(self) -> int:
        """Get the configured request timeout."""
        return self._config.get_active_timeout()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release pooled connections."""
        if self._api_client is not None:
            self._api_client.close()
            self._api_client = None
        logger.debug("Kubernetes client closed")

    def __enter__(self) -> KubernetesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

"""Application reconciliation: upsert, delete and rollback.

An application is a namespace, optional RBAC, service, secrets, a
Deployment and an optional ingress. Upsert applies them in dependency
order and stops at the first failure. Delete attempts every resource and
reports all failures together. Nothing is transactional; a failed call
can leave some resources applied.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DeployConfig
from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesDeleteError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesReconcileError,
)
from kubedeploy.services.kubernetes.base import K8sBaseManager
from kubedeploy.services.kubernetes.labels import label_selector_string, match_labels
from kubedeploy.services.kubernetes.resources import app_name
from kubedeploy.services.kubernetes.templates import (
    deployment_template,
    ingress_template,
    namespace_template,
    role_binding_template,
    role_template,
    secret_template,
    service_account_template,
    service_template,
)
from kubedeploy.services.kubernetes.templates.rbac import RBAC_API_VERSION
from kubedeploy.utils.merge import get_nested_value
from kubedeploy.utils.redact import redact_spec

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.client import KubernetesClient
    from kubedeploy.integrations.kubernetes.models import Application, DeleteRequest
    from kubedeploy.integrations.kubernetes.object_api import KubernetesObjectApi

DEFAULT_NAMESPACE = "default"
REVISION_ANNOTATION = "deployment.kubernetes.io/revision"
POD_TEMPLATE_HASH_LABEL = "pod-template-hash"

Stage = tuple[str, Callable[[], list[dict[str, Any]]]]


def _descriptor(
    api_version: str,
    kind: str,
    name: str,
    namespace: str | None = None,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return {"apiVersion": api_version, "kind": kind, "metadata": metadata}


def _revision(resource: dict[str, Any]) -> int:
    annotations = get_nested_value(resource, "metadata.annotations") or {}
    try:
        return int(annotations.get(REVISION_ANNOTATION, 0))
    except (TypeError, ValueError):
        return 0


class ApplicationManager(K8sBaseManager):
    """Reconcile applications against the cluster.

    Example:
        ```python
        manager = ApplicationManager(client, config.deploy)
        app = manager.verify_deploy(Application.model_validate(data))
        if app is not None:
            manager.upsert(app)
        ```
    """

    _entity_name = "application"

    def __init__(
        self,
        client: KubernetesClient,
        deploy_config: DeployConfig | None = None,
        *,
        object_api: KubernetesObjectApi | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            client: Kubernetes API client instance.
            deploy_config: Deployment scoping rules and fulfiller name.
            object_api: Generic resource API; built from ``client`` when omitted.
        """
        super().__init__(client, object_api=object_api)
        self._deploy = deploy_config if deploy_config is not None else DeployConfig()

    @property
    def fulfiller(self) -> str:
        """Name recorded in the managed-by label."""
        return self._deploy.fulfiller

    # =========================================================================
    # Deploy Verification
    # =========================================================================

    def verify_deploy(self, app: Application) -> Application | None:
        """Decide whether this process should deploy ``app``.

        Args:
            app: Requested application.

        Returns:
            The application, with an empty namespace replaced by
            ``default``, or None if it belongs to another deployer.

        Raises:
            KubernetesError: If namespace mode is set without a pod namespace.
        """
        if not app.ns:
            app = app.model_copy(update={"ns": DEFAULT_NAMESPACE})

        deploy = self._deploy
        if not deploy.mode:
            return app
        if deploy.environment and deploy.environment != app.environment:
            self._log.debug(
                "skipping_application",
                app=app.slug,
                reason="environment",
                environment=app.environment,
                expected=deploy.environment,
            )
            return None
        if deploy.mode == "namespace":
            if not deploy.pod_namespace:
                raise KubernetesError(
                    "Deploy mode is 'namespace' but the pod namespace is not set; "
                    "set POD_NAMESPACE"
                )
            if app.ns != deploy.pod_namespace:
                self._log.info(
                    "skipping_application",
                    app=app.slug,
                    reason="namespace",
                    expected=deploy.pod_namespace,
                )
                return None
        elif deploy.namespaces and app.ns not in deploy.namespaces:
            self._log.debug(
                "skipping_application",
                app=app.slug,
                reason="unmanaged_namespace",
                managed=deploy.namespaces,
            )
            return None
        return app

    # =========================================================================
    # Upsert
    # =========================================================================

    def _upsert_stages(self, app: Application) -> list[Stage]:
        fulfiller = self.fulfiller
        stages: list[Stage] = [("namespace", lambda: [namespace_template(app, fulfiller)])]
        if app.rbac is not None:
            stages.append(
                (
                    "rbac",
                    lambda: [
                        service_account_template(app, fulfiller),
                        role_template(app, fulfiller),
                        role_binding_template(app, fulfiller),
                    ],
                )
            )
        if app.port:
            stages.append(("service", lambda: [service_template(app, fulfiller)]))
        if app.secrets:
            stages.append(
                ("secrets", lambda: [secret_template(app, s, fulfiller) for s in app.secrets or []])
            )
        stages.append(("deployment", lambda: [deployment_template(app, fulfiller)]))
        if app.path:
            stages.append(("ingress", lambda: [ingress_template(app, fulfiller)]))
        return stages

    def upsert(self, app: Application) -> list[dict[str, Any]]:
        """Create or patch every resource of an application.

        Stages run in order: namespace, rbac, service, secrets,
        deployment, ingress. Stages the application does not configure are
        skipped. The first failure aborts the remaining stages.

        Args:
            app: Application to apply.

        Returns:
            The resources as returned by the API server, in apply order.

        Raises:
            KubernetesReconcileError: Naming the application and failed stage.
        """
        slug = app_name(app)
        self._log.info("upserting_application", app=slug)
        applied: list[dict[str, Any]] = []
        for stage, build in self._upsert_stages(app):
            try:
                for spec in build():
                    self._log.debug(
                        "upserting_resource", app=slug, stage=stage, spec=redact_spec(spec)
                    )
                    applied.append(self._objects.upsert(spec))
            except KubernetesError as e:
                self._log.error("upsert_failed", app=slug, stage=stage, error=str(e))
                raise KubernetesReconcileError(slug, stage, e) from e
        self._log.info("upserted_application", app=slug, resources=len(applied))
        return applied

    # =========================================================================
    # Delete
    # =========================================================================

    def _delete_one(self, spec: dict[str, Any]) -> list[dict[str, Any]]:
        deleted = self._objects.delete_if_exists(spec)
        if deleted is None:
            self._log.debug("resource_absent", kind=spec["kind"], name=spec["metadata"]["name"])
            return []
        self._log.info("deleted_resource", kind=spec["kind"], name=spec["metadata"]["name"])
        return [deleted]

    def _delete_first(self, *specs: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete the first of ``specs`` that exists."""
        for spec in specs:
            deleted = self._delete_one(spec)
            if deleted:
                return deleted
        return []

    def _delete_secrets(self, req: DeleteRequest) -> list[dict[str, Any]]:
        selector = label_selector_string(match_labels(req.name, req.workspace_id))
        secrets = self._objects.list(
            {"apiVersion": "v1", "kind": "Secret", "metadata": {"namespace": req.ns}},
            label_selector=selector,
        )
        deleted: list[dict[str, Any]] = []
        for secret in secrets:
            name = secret["metadata"]["name"]
            deleted.extend(self._delete_one(_descriptor("v1", "Secret", name, req.ns)))
        return deleted

    def _delete_stages(self, req: DeleteRequest) -> list[Stage]:
        name, ns = req.name, req.ns
        ingress = _descriptor("networking.k8s.io/v1", "Ingress", name, ns)
        deployment = _descriptor("apps/v1", "Deployment", name, ns)
        service = _descriptor("v1", "Service", name, ns)
        service_account = _descriptor("v1", "ServiceAccount", name, ns)
        role_bindings = (
            _descriptor(RBAC_API_VERSION, "RoleBinding", name, ns),
            _descriptor(RBAC_API_VERSION, "ClusterRoleBinding", name),
        )
        roles = (
            _descriptor(RBAC_API_VERSION, "Role", name, ns),
            _descriptor(RBAC_API_VERSION, "ClusterRole", name),
        )
        return [
            ("ingress", lambda: self._delete_one(ingress)),
            ("deployment", lambda: self._delete_one(deployment)),
            ("secrets", lambda: self._delete_secrets(req)),
            ("service", lambda: self._delete_one(service)),
            ("role-binding", lambda: self._delete_first(*role_bindings)),
            ("service-account", lambda: self._delete_one(service_account)),
            ("role", lambda: self._delete_first(*roles)),
        ]

    def delete(self, req: DeleteRequest) -> list[dict[str, Any]]:
        """Delete every resource of an application.

        Every stage is attempted even when earlier ones fail. Resources
        that do not exist count as deleted. The namespace is left in place.

        Args:
            req: Application to remove.

        Returns:
            The resources that were deleted.

        Raises:
            KubernetesDeleteError: With one message per failed stage.
        """
        slug = app_name(req)
        self._log.info("deleting_application", app=slug)
        deleted: list[dict[str, Any]] = []
        errors: list[str] = []
        for stage, action in self._delete_stages(req):
            try:
                deleted.extend(action())
            except KubernetesError as e:
                self._log.error("delete_failed", app=slug, stage=stage, error=str(e))
                errors.append(f"Failed to delete {stage} of {slug}: {e}")
        if errors:
            raise KubernetesDeleteError(slug, errors)
        self._log.info("deleted_application", app=slug, resources=len(deleted))
        return deleted

    # =========================================================================
    # Rollback
    # =========================================================================

    def rollback(
        self,
        req: DeleteRequest,
        previous: Application | None = None,
    ) -> dict[str, Any] | None:
        """Roll the application's Deployment back; other resources are untouched.

        With ``previous``, its Deployment is rebuilt under the name, namespace
        and workspace of ``req`` and applied. Otherwise the pod template of
        the ReplicaSet with the highest revision below the current one is
        patched back into the live Deployment.

        Args:
            req: Application to roll back.
            previous: Previously deployed application, if recorded.

        Returns:
            The patched Deployment, or None if no Deployment exists.

        Raises:
            KubernetesReconcileError: If re-applying ``previous`` fails.
            KubernetesError: If there is no earlier revision or a call fails.
        """
        slug = app_name(req)
        if previous is not None:
            target_app = previous.model_copy(
                update={"name": req.name, "ns": req.ns, "workspace_id": req.workspace_id}
            )
            spec = deployment_template(target_app, self.fulfiller)
            self._log.info("rolling_back_deployment", app=slug, image=previous.image)
            try:
                return self._objects.upsert(spec)
            except KubernetesError as e:
                raise KubernetesReconcileError(slug, "deployment", e) from e

        descriptor = _descriptor("apps/v1", "Deployment", req.name, req.ns)
        try:
            live = self._objects.read(descriptor)
        except KubernetesNotFoundError:
            self._log.info("rollback_skipped", app=slug, reason="deployment_absent")
            return None

        current = _revision(live)
        target = self._previous_replica_set(req, live, current)
        if target is None:
            raise KubernetesError(
                f"Deployment {slug} has no revision earlier than {current} to roll back to",
                resource_type="Deployment",
                resource_name=req.name,
                namespace=req.ns,
            )

        template = copy.deepcopy(get_nested_value(target, "spec.template") or {})
        template_metadata = template.get("metadata") or {}
        (template_metadata.get("labels") or {}).pop(POD_TEMPLATE_HASH_LABEL, None)
        template_metadata.pop("creationTimestamp", None)

        patch = {**descriptor, "spec": {"template": template}}
        self._log.info(
            "rolling_back_deployment",
            app=slug,
            from_revision=current,
            to_revision=_revision(target),
        )
        return self._objects.patch(patch)

    def _previous_replica_set(
        self,
        req: DeleteRequest,
        deployment: dict[str, Any],
        current: int,
    ) -> dict[str, Any] | None:
        """Find the Deployment's ReplicaSet with the highest revision below ``current``."""
        labels = get_nested_value(deployment, "spec.selector.matchLabels") or match_labels(
            req.name, req.workspace_id
        )
        replica_sets = self._objects.list(
            {"apiVersion": "apps/v1", "kind": "ReplicaSet", "metadata": {"namespace": req.ns}},
            label_selector=label_selector_string(labels),
        )
        uid = get_nested_value(deployment, "metadata.uid")

        def owned(rs: dict[str, Any]) -> bool:
            owners = get_nested_value(rs, "metadata.ownerReferences") or []
            if not owners or not uid:
                return True
            return any(o.get("uid") == uid for o in owners)

        candidates = [rs for rs in replica_sets if owned(rs) and 0 < _revision(rs) < current]
        return max(candidates, key=_revision, default=None)

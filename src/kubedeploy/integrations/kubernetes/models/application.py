"""Application models: the unit of deployment and its delete request."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RbacSpec(BaseModel):
    """Partial RBAC specs for an application.

    ``role_spec`` is required; a ``kind: ClusterRole`` in it selects the
    cluster-scoped role and binding.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    role_spec: dict[str, Any] = Field(alias="roleSpec", description="Role or ClusterRole spec")
    service_account_spec: dict[str, Any] | None = Field(
        default=None, alias="serviceAccountSpec", description="ServiceAccount overlay"
    )
    role_binding_spec: dict[str, Any] | None = Field(
        default=None, alias="roleBindingSpec", description="RoleBinding overlay"
    )


class Application(BaseModel):
    """An application to deploy.

    Accepts camelCase keys from data files and snake_case keys from Python
    callers. The model is frozen; reconciliation never mutates it.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    workspace_id: str = Field(alias="workspaceId", description="Owning workspace")
    environment: str | None = Field(default=None, description="Target environment")
    name: str = Field(description="Application name")
    ns: str = Field(default="", description="Target namespace")
    image: str = Field(description="Container image")
    image_pull_secret: str | None = Field(default=None, alias="imagePullSecret")
    port: int | None = Field(default=None, description="Container port served over HTTP")
    path: str | None = Field(default=None, description="Ingress path")
    host: str | None = Field(default=None, description="Ingress host")
    protocol: str | None = Field(default=None, description="Endpoint protocol")
    tls_secret: str | None = Field(default=None, alias="tlsSecret")
    replicas: int | None = Field(default=None, description="Deployment replicas")
    secrets: list[dict[str, Any]] | None = Field(default=None, description="Secret specs")
    rbac: RbacSpec | None = None
    deployment_spec: dict[str, Any] | None = Field(default=None, alias="deploymentSpec")
    service_spec: dict[str, Any] | None = Field(default=None, alias="serviceSpec")
    ingress_spec: dict[str, Any] | None = Field(default=None, alias="ingressSpec")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int | None) -> int | None:
        if v is not None and not 0 < v < 65536:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("replicas")
    @classmethod
    def validate_replicas(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("replicas must not be negative")
        return v

    @property
    def slug(self) -> str:
        """Application identifier used in errors and logs."""
        return app_slug(self.ns, self.name)

    def delete_request(self) -> DeleteRequest:
        """Return the request that removes this application."""
        return DeleteRequest(name=self.name, ns=self.ns, workspace_id=self.workspace_id)


class DeleteRequest(BaseModel):
    """Enough of an application to find and remove its resources by label."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: str
    ns: str
    workspace_id: str = Field(alias="workspaceId")

    @property
    def slug(self) -> str:
        return app_slug(self.ns, self.name)


def app_slug(ns: str, name: str) -> str:
    """Return ``ns/name``."""
    return f"{ns}/{name}"

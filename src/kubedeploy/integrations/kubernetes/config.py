"""Kubernetes integration configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_FULFILLER = "kubedeploy"


class ClusterConfig(BaseModel):
    """Configuration for a single Kubernetes cluster."""

    model_config = ConfigDict(extra="forbid")

    context: str = ""
    kubeconfig: str | None = None
    namespace: str = "default"
    timeout: int = 300

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser()) if v else None


class KubernetesDefaultsConfig(BaseModel):
    """Default settings for Kubernetes API calls."""

    model_config = ConfigDict(extra="forbid")

    timeout: int = 300
    retry_attempts: int = 5
    retry_min_wait: float = 0.1
    retry_max_wait: float = 3.0

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """At least one attempt is always made."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v

    @field_validator("retry_min_wait", "retry_max_wait")
    @classmethod
    def validate_wait(cls, v: float) -> float:
        if v < 0:
            raise ValueError("retry wait must be non-negative")
        return v


class DeployConfig(BaseModel):
    """Which application deployments this process is responsible for.

    ``mode`` unset means every request is fulfilled. In ``namespace``
    mode only applications targeting ``pod_namespace`` are deployed; in
    ``cluster`` mode a non-empty ``namespaces`` list restricts deployments
    to those namespaces.
    """

    model_config = ConfigDict(extra="forbid")

    mode: Literal["cluster", "namespace"] | None = None
    environment: str | None = None
    namespaces: list[str] = []
    pod_namespace: str | None = None
    fulfiller: str = DEFAULT_FULFILLER

    @field_validator("fulfiller")
    @classmethod
    def validate_fulfiller(cls, v: str) -> str:
        """Strip any npm-style leading '@' from the fulfiller name."""
        v = v.lstrip("@")
        if not v:
            raise ValueError("fulfiller must not be empty")
        return v


class KubernetesConfig(BaseModel):
    """Complete kubedeploy configuration."""

    model_config = ConfigDict(extra="forbid")

    clusters: dict[str, ClusterConfig] = {}
    active_cluster: str | None = None
    defaults: KubernetesDefaultsConfig = KubernetesDefaultsConfig()
    deploy: DeployConfig = DeployConfig()

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> KubernetesConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            KUBEDEPLOY_CONTEXT: Active cluster name or kubeconfig context
            KUBEDEPLOY_KUBECONFIG: Kubeconfig path for every configured cluster
            KUBEDEPLOY_NAMESPACE: Default namespace for every configured cluster
            KUBEDEPLOY_TIMEOUT: Request timeout in seconds
            KUBEDEPLOY_RETRY_ATTEMPTS: Attempts per API call
            KUBEDEPLOY_MODE: Deploy mode (cluster, namespace)
            KUBEDEPLOY_ENVIRONMENT: Environment this process deploys for
            KUBEDEPLOY_NAMESPACES: Comma-separated managed namespaces
            KUBEDEPLOY_FULFILLER: Name recorded in the managed-by label
            POD_NAMESPACE: Namespace this process runs in
        """
        config_dict = base_config.copy() if base_config else {}
        config_dict.setdefault("defaults", {})
        config_dict.setdefault("deploy", {})
        config_dict.setdefault("clusters", {})

        if context := os.environ.get("KUBEDEPLOY_CONTEXT"):
            config_dict["active_cluster"] = context
        if timeout := os.environ.get("KUBEDEPLOY_TIMEOUT"):
            config_dict["defaults"]["timeout"] = int(timeout)
        if attempts := os.environ.get("KUBEDEPLOY_RETRY_ATTEMPTS"):
            config_dict["defaults"]["retry_attempts"] = int(attempts)
        if mode := os.environ.get("KUBEDEPLOY_MODE"):
            config_dict["deploy"]["mode"] = mode
        if environment := os.environ.get("KUBEDEPLOY_ENVIRONMENT"):
            config_dict["deploy"]["environment"] = environment
        if namespaces := os.environ.get("KUBEDEPLOY_NAMESPACES"):
            config_dict["deploy"]["namespaces"] = [
                ns.strip() for ns in namespaces.split(",") if ns.strip()
            ]
        if fulfiller := os.environ.get("KUBEDEPLOY_FULFILLER"):
            config_dict["deploy"]["fulfiller"] = fulfiller
        if pod_namespace := os.environ.get("POD_NAMESPACE"):
            config_dict["deploy"]["pod_namespace"] = pod_namespace

        instance = cls.model_validate(config_dict)

        if kubeconfig := os.environ.get("KUBEDEPLOY_KUBECONFIG"):
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.kubeconfig = str(Path(kubeconfig).expanduser())
        if namespace := os.environ.get("KUBEDEPLOY_NAMESPACE"):
            for cluster_cfg in instance.clusters.values():
                cluster_cfg.namespace = namespace

        return instance

    def get_active_cluster(self) -> ClusterConfig | None:
        """Return the configured cluster selected by ``active_cluster``.

        Falls back to the first configured cluster, or None when no
        clusters are configured or ``active_cluster`` names a raw context.
        """
        if self.active_cluster:
            return self.clusters.get(self.active_cluster)
        if self.clusters:
            return next(iter(self.clusters.values()))
        return None

    def get_active_context(self) -> str | None:
        """Get the kubeconfig context to load, or None for the current one."""
        if cluster := self.get_active_cluster():
            return cluster.context or None
        return self.active_cluster

    def get_active_kubeconfig(self) -> str | None:
        """Get the kubeconfig path of the active cluster, if configured."""
        cluster = self.get_active_cluster()
        return cluster.kubeconfig if cluster else None

    def get_active_namespace(self) -> str:
        """Get the default namespace for the active cluster."""
        cluster = self.get_active_cluster()
        return cluster.namespace if cluster else "default"

    def get_active_timeout(self) -> int:
        """Get the request timeout for the active cluster."""
        cluster = self.get_active_cluster()
        return cluster.timeout if cluster else self.defaults.timeout

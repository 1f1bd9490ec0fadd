"""Desired-state templates, one module per resource kind.

Each builder produces a default spec for an application and merges the
caller's partial spec for that kind over it.
"""

from kubedeploy.services.kubernetes.templates.base import overlay, service_account_name
from kubedeploy.services.kubernetes.templates.deployment import deployment_template
from kubedeploy.services.kubernetes.templates.ingress import endpoint_base_url, ingress_template
from kubedeploy.services.kubernetes.templates.namespace import namespace_template
from kubedeploy.services.kubernetes.templates.rbac import (
    is_cluster_role,
    role_binding_template,
    role_template,
    service_account_template,
)
from kubedeploy.services.kubernetes.templates.secret import encode_secret, secret_template
from kubedeploy.services.kubernetes.templates.service import service_template

__all__ = [
    "deployment_template",
    "encode_secret",
    "endpoint_base_url",
    "ingress_template",
    "is_cluster_role",
    "namespace_template",
    "overlay",
    "role_binding_template",
    "role_template",
    "secret_template",
    "service_account_name",
    "service_account_template",
    "service_template",
]

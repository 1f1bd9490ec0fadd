"""kubedeploy - reconcile application workloads into Kubernetes clusters."""

from kubedeploy.__version__ import __version__

__all__ = ["__version__"]

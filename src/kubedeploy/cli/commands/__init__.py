"""kubedeploy CLI command modules."""

from kubedeploy.cli.commands.deploy import register_deploy_commands
from kubedeploy.cli.commands.fetch import register_fetch_commands

__all__ = [
    "register_deploy_commands",
    "register_fetch_commands",
]

"""CDK stacks composing the modinfra components into an example deployment."""

from .identity_stack import IdentityStack
from .monitoring_stack import MonitoringStack
from .network_stack import NetworkStack
from .storage_stack import StorageStack

__all__ = [
    "IdentityStack",
    "MonitoringStack",
    "NetworkStack",
    "StorageStack",
]

"""
Contract Deployment Package
Resolves compiled artifacts, deploys them and reports the deployed address
"""

from .artifacts import ArtifactResolver, ContractArtifact
from .config import DeployConfig
from .errors import DeploymentFailure
from .runner import DeploymentRunner, DeployedContract, PendingDeployment
from .wallet import DeploymentSigner

__version__ = '0.1.0'

__all__ = [
    'ArtifactResolver',
    'ContractArtifact',
    'DeployConfig',
    'DeploymentFailure',
    'DeploymentRunner',
    'DeployedContract',
    'PendingDeployment',
    'DeploymentSigner'
]

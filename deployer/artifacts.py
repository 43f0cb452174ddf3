"""
Artifact Resolver
Turns a contract name into a deployable web3 contract factory
"""

import re
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List
from web3 import Web3
from loguru import logger

from .errors import DeploymentFailure


SKIPPED_DIRS = ('build-info', 'cache')
SOURCE_SUFFIXES = ('.sol', '.vy')
_HEX_RE = re.compile(r'^[0-9a-fA-F]*$')


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract: ABI plus creation bytecode"""

    contract_name: str
    source_name: str
    abi: List[Dict]
    bytecode: str
    path: str
    link_references: Dict = field(default_factory=dict)

    @property
    def fully_qualified_name(self) -> str:
        if self.source_name:
            return f"{self.source_name}:{self.contract_name}"
        return self.contract_name

    @property
    def is_abstract(self) -> bool:
        """Interfaces and abstract contracts compile to empty bytecode"""
        return self.bytecode in ('', '0x')


def load_artifact(path) -> ContractArtifact:
    """
    Load one artifact JSON file

    Handles both the Hardhat layout (bytecode is a hex string) and the
    Foundry layout (bytecode is {"object": ..., "linkReferences": ...}).

    Args:
        path: Path to the artifact file

    Returns:
        ContractArtifact
    """
    path = Path(path)

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise DeploymentFailure(f"Cannot read artifact {path}: {e}", stage='resolve') from e

    if not isinstance(data, dict) or 'abi' not in data or 'bytecode' not in data:
        raise DeploymentFailure(f"Artifact {path} has no abi/bytecode", stage='resolve')

    bytecode = data['bytecode']
    link_references = data.get('linkReferences') or {}

    if isinstance(bytecode, dict):
        link_references = bytecode.get('linkReferences') or link_references
        bytecode = bytecode.get('object', '')

    if not isinstance(bytecode, str):
        raise DeploymentFailure(f"Artifact {path} has malformed bytecode", stage='resolve')

    if bytecode and not bytecode.startswith('0x'):
        bytecode = '0x' + bytecode

    return ContractArtifact(
        contract_name=data.get('contractName') or path.stem,
        source_name=data.get('sourceName') or '',
        abi=data['abi'],
        bytecode=bytecode,
        path=str(path),
        link_references=link_references
    )


class ArtifactResolver:
    """
    Looks up compiled artifacts under an artifacts directory

    Expected layout is <artifacts>/<source path>/<Contract>.json, which is
    what both Hardhat (artifacts/contracts/Foo.sol/Foo.json) and Foundry
    (out/Foo.sol/Foo.json) produce.
    """

    def __init__(self, artifacts_dir: str = 'artifacts'):
        self.artifacts_dir = Path(artifacts_dir)

    def find(self, name: str) -> Path:
        """
        Find the artifact file for a contract name

        Args:
            name: Bare name (WarrantyNFT) or fully qualified
                (contracts/WarrantyNFT.sol:WarrantyNFT)

        Returns:
            Path to the artifact JSON
        """
        if not name:
            raise DeploymentFailure("Contract name is empty", stage='resolve')

        if not self.artifacts_dir.is_dir():
            raise DeploymentFailure(
                f"Artifacts directory not found: {self.artifacts_dir} "
                f"(compile the contracts first, e.g. 'npx hardhat compile')",
                stage='resolve'
            )

        if ':' in name:
            return self._find_qualified(name)

        matches = [p for p in self._artifact_files() if p.stem == name]

        if not matches:
            raise DeploymentFailure(
                f"Artifact for contract '{name}' not found in {self.artifacts_dir} "
                f"(compile the contracts first, e.g. 'npx hardhat compile')",
                stage='resolve'
            )

        if len(matches) > 1:
            candidates = ', '.join(self._qualified_name(p) for p in matches)
            raise DeploymentFailure(
                f"Multiple artifacts match '{name}': {candidates}. "
                f"Use the fully qualified name",
                stage='resolve'
            )

        return matches[0]

    def _find_qualified(self, name: str) -> Path:
        source_name, contract_name = name.rsplit(':', 1)

        if not source_name or not contract_name:
            raise DeploymentFailure(
                f"Malformed contract name '{name}' (expected <source>:<Contract>)",
                stage='resolve'
            )

        candidates = [
            self.artifacts_dir / source_name / f"{contract_name}.json",
            self.artifacts_dir / Path(source_name).name / f"{contract_name}.json"
        ]

        for candidate in candidates:
            if not self._inside_artifacts_dir(candidate):
                raise DeploymentFailure(
                    f"Contract name '{name}' points outside {self.artifacts_dir}",
                    stage='resolve'
                )
            if candidate.is_file():
                return candidate

        raise DeploymentFailure(
            f"Artifact for contract '{name}' not found in {self.artifacts_dir}",
            stage='resolve'
        )

    def resolve(self, name: str) -> ContractArtifact:
        """
        Resolve a contract name into a deployable artifact

        Args:
            name: Contract name

        Returns:
            ContractArtifact ready for deployment
        """
        path = self.find(name)
        artifact = load_artifact(path)

        if artifact.is_abstract:
            raise DeploymentFailure(
                f"{artifact.fully_qualified_name} is abstract or an interface "
                f"and cannot be deployed",
                stage='resolve'
            )

        if artifact.link_references:
            libraries = ', '.join(
                f"{source}:{lib}"
                for source, libs in artifact.link_references.items()
                for lib in libs
            )
            raise DeploymentFailure(
                f"{artifact.fully_qualified_name} needs linked libraries: {libraries}",
                stage='resolve'
            )

        body = artifact.bytecode[2:]
        if len(body) % 2 or not _HEX_RE.match(body):
            raise DeploymentFailure(
                f"{artifact.fully_qualified_name} has invalid bytecode in {path}",
                stage='resolve'
            )

        logger.debug(f"Resolved {artifact.fully_qualified_name} from {path}")
        return artifact

    def contract_factory(self, w3: Web3, name: str):
        """
        Get a web3 contract factory for a contract name

        Args:
            w3: Web3 instance
            name: Contract name

        Returns:
            Tuple of (ContractArtifact, contract factory)
        """
        artifact = self.resolve(name)

        try:
            factory = w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        except Exception as e:
            raise DeploymentFailure(
                f"Cannot build factory for {artifact.fully_qualified_name}: {e}",
                stage='resolve'
            ) from e

        return artifact, factory

    def available(self) -> List[str]:
        """Fully qualified names of every artifact found"""
        if not self.artifacts_dir.is_dir():
            return []
        return sorted(self._qualified_name(p) for p in self._artifact_files())

    def _artifact_files(self) -> List[Path]:
        files = []

        for path in sorted(self.artifacts_dir.rglob('*.json')):
            relative = path.relative_to(self.artifacts_dir)

            if any(part in SKIPPED_DIRS for part in relative.parts[:-1]):
                continue
            if path.name.endswith('.dbg.json'):
                continue
            # Contract artifacts live in a directory named after their source file
            if path.parent.suffix not in SOURCE_SUFFIXES:
                continue

            files.append(path)

        return files

    def _inside_artifacts_dir(self, path: Path) -> bool:
        root = self.artifacts_dir.resolve()
        resolved = path.resolve()
        return resolved != root and root in resolved.parents

    def _qualified_name(self, path: Path) -> str:
        source = path.parent.relative_to(self.artifacts_dir).as_posix()
        return f"{source}:{path.stem}"

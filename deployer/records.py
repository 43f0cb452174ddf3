"""
Deployment Records
Writes the deployed address back into a .env file
"""

import os
import re
import shutil
import tempfile
from loguru import logger

from .errors import DeploymentFailure


_KEY_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def update_env_file(env_path: str, key: str, contract_address: str):
    """
    Set KEY=<address> in a .env file

    Replaces the first existing assignment of the key (with or without an
    `export ` prefix) or appends one. The file is created if missing.

    Args:
        env_path: Path to the .env file
        key: Variable name
        contract_address: Deployed contract address
    """
    if not _KEY_RE.match(key):
        raise DeploymentFailure(f"Invalid environment variable name: {key!r}", stage='record')

    try:
        lines = []
        if os.path.exists(env_path):
            with open(env_path, 'r') as f:
                lines = f.readlines()

        # Update or add the key
        found = False
        for i, line in enumerate(lines):
            stripped = line.lstrip()
            prefix = ''
            if stripped.startswith('export '):
                stripped = stripped[len('export '):].lstrip()
                prefix = 'export '

            if stripped.startswith(f'{key}='):
                lines[i] = f'{prefix}{key}={contract_address}\n'
                found = True
                break

        if not found:
            if lines and not lines[-1].endswith('\n'):
                lines[-1] += '\n'
            lines.append(f'{key}={contract_address}\n')

        _write_atomic(env_path, lines)

    except OSError as e:
        raise DeploymentFailure(f"Error updating {env_path}: {e}", stage='record') from e

    logger.success(f"Updated {env_path} with {key}")


def _write_atomic(path: str, lines):
    """Write to a temp file beside path, then swap it in with os.replace"""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix='.env.', suffix='.tmp', dir=directory)

    try:
        with os.fdopen(fd, 'w') as f:
            f.writelines(lines)
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise

"""
Contract Deployment Wrapper
Deploys the configured contract using settings from .env
"""

import sys

from deployer.cli import main

if __name__ == "__main__":
    sys.exit(main())

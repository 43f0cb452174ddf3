"""
Deployment Errors
Single failure type raised by every deployment stage
"""

from typing import Optional


class DeploymentFailure(Exception):
    """
    Any failure while resolving, submitting or confirming a deployment

    The stage is informational only. Every failure is terminal for the
    invocation and is handled the same way by the CLI.
    """

    STAGES = ('config', 'connect', 'resolve', 'submit', 'confirm', 'record')

    def __init__(self, message: str, stage: Optional[str] = None):
        if stage is not None and stage not in self.STAGES:
            raise ValueError(f"Unknown deployment stage: {stage}")

        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self):
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message

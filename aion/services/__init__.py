"""
Services package - Run orchestration and credential handling.
"""

from aion.services.credentials import CredentialProvider, StaticCredentialProvider, inject_credentials
from aion.services.runs import create_run, execute_run, run_now

__all__ = [
    "CredentialProvider",
    "StaticCredentialProvider",
    "inject_credentials",
    "create_run",
    "execute_run",
    "run_now",
]

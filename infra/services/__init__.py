"""Core services package

- ExecutionClient: runs code on the external execution service
- SUPPORTED_LANGUAGES: static language -> runtime table
"""
from .execution_client import ExecutionClient, ExecutionOutcome, ExecutionServiceError
from .languages import SUPPORTED_LANGUAGES, LanguageRuntime, get_language

__all__ = [
    'ExecutionClient',
    'ExecutionOutcome',
    'ExecutionServiceError',
    'SUPPORTED_LANGUAGES',
    'LanguageRuntime',
    'get_language',
]

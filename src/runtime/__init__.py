"""
Runtime wiring: the ScanContext and its factories.
"""

from .context import ScanContext, create_classifier_from_config, create_context_from_config

__all__ = ["ScanContext", "create_classifier_from_config", "create_context_from_config"]

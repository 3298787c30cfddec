"""Starter template bootstrapping.

Turns a plain HTML/CSS starter repository into Jekyll-ready site sources.
"""

from .core import (
    BootstrapError,
    BootstrapResult,
    FeatureDisabled,
    FetchFailed,
    DisableFailed,
    MergeFailed,
    OperationCancelled,
    TemplateBootstrapper,
)
from .partials import normalize_style_partials
from .rules import HTML_RULES, STYLESHEET_RULES, RewriteRule, apply_rules

__all__ = [
    "BootstrapError",
    "BootstrapResult",
    "FeatureDisabled",
    "FetchFailed",
    "DisableFailed",
    "MergeFailed",
    "OperationCancelled",
    "TemplateBootstrapper",
    "normalize_style_partials",
    "HTML_RULES",
    "STYLESHEET_RULES",
    "RewriteRule",
    "apply_rules",
]

"""Configuration for context gathering."""

from .settings import ContextSettings, GathererConfig, TokenizerSettings, get_default_config

__all__ = ["ContextSettings", "GathererConfig", "TokenizerSettings", "get_default_config"]

"""Configuration settings for context gathering."""

import os
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
import yaml
import json
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from ..exceptions import ConfigError


# Source name -> ContextSettings attribute holding its enable flag
SOURCE_FLAGS = {
    'serena': 'enable_serena',
    'memory': 'enable_memory',
    'cclsp': 'enable_cclsp',
    'file': 'include_file_content',
}

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


@dataclass
class ContextSettings:
    """Context gathering configuration."""
    enable_serena: bool = True
    enable_memory: bool = True
    enable_cclsp: bool = True
    max_context_tokens: int = 32000
    include_file_content: bool = True
    source_timeout: Optional[float] = None
    working_directory: str = '.'
    memory_project_context: str = 'context-gatherer'


@dataclass
class TokenizerSettings:
    """Token estimator configuration."""
    backend: str = 'auto'
    encoding_name: str = 'cl100k_base'


@dataclass
class GathererConfig:
    """Main configuration for the context gatherer."""
    context: ContextSettings = field(default_factory=ContextSettings)
    tokenizer: TokenizerSettings = field(default_factory=TokenizerSettings)
    log_level: str = 'INFO'

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'GathererConfig':
        """Create configuration from dictionary."""
        config_dict = config_dict or {}
        try:
            context = ContextSettings(**config_dict.get('context', {}))
            tokenizer = TokenizerSettings(**config_dict.get('tokenizer', {}))
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        return cls(
            context=context,
            tokenizer=tokenizer,
            log_level=config_dict.get('log_level', 'INFO')
        )

    @classmethod
    def from_yaml(cls, file_path: str) -> 'GathererConfig':
        """Load configuration from YAML file."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {file_path}: {e}") from e
        return cls.from_dict(config_dict)

    @classmethod
    def from_json(cls, file_path: str) -> 'GathererConfig':
        """Load configuration from JSON file."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {file_path}: {e}") from e
        return cls.from_dict(config_dict)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'GathererConfig':
        """
        Load configuration from environment variables.

        A .env file (explicit path, or the nearest one from the current
        directory upwards) is loaded first without overriding variables that
        are already set. Boolean flags are only switched off by the literal
        string 'false'.

        Args:
            dotenv_path: Optional explicit path to a .env file

        Returns:
            GathererConfig built from defaults plus environment overrides
        """
        load_dotenv(dotenv_path or find_dotenv(usecwd=True))

        context: Dict[str, Any] = {}
        for env_name, key in [('ENABLE_SERENA', 'enable_serena'),
                              ('ENABLE_MEMORY', 'enable_memory'),
                              ('ENABLE_CCLSP', 'enable_cclsp'),
                              ('INCLUDE_FILE_CONTENT', 'include_file_content')]:
            if os.environ.get(env_name, '').lower() == 'false':
                context[key] = False

        try:
            if os.environ.get('MAX_CONTEXT_TOKENS'):
                context['max_context_tokens'] = int(os.environ['MAX_CONTEXT_TOKENS'])
            if os.environ.get('SOURCE_TIMEOUT'):
                context['source_timeout'] = float(os.environ['SOURCE_TIMEOUT'])
        except ValueError as e:
            raise ConfigError(f"Invalid numeric environment value: {e}") from e

        if os.environ.get('CONTEXT_WORKING_DIRECTORY'):
            context['working_directory'] = os.environ['CONTEXT_WORKING_DIRECTORY']

        config_dict: Dict[str, Any] = {'context': context}
        if os.environ.get('LOG_LEVEL'):
            config_dict['log_level'] = os.environ['LOG_LEVEL'].upper()

        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'context': {
                'enable_serena': self.context.enable_serena,
                'enable_memory': self.context.enable_memory,
                'enable_cclsp': self.context.enable_cclsp,
                'max_context_tokens': self.context.max_context_tokens,
                'include_file_content': self.context.include_file_content,
                'source_timeout': self.context.source_timeout,
                'working_directory': self.context.working_directory,
                'memory_project_context': self.context.memory_project_context
            },
            'tokenizer': {
                'backend': self.tokenizer.backend,
                'encoding_name': self.tokenizer.encoding_name
            },
            'log_level': self.log_level
        }

    def save_yaml(self, file_path: str):
        """Save configuration to YAML file."""
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True)

    def save_json(self, file_path: str):
        """Save configuration to JSON file."""
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def is_source_enabled(self, source_name: str) -> bool:
        """Enable flag for a source; unknown sources are always enabled."""
        flag = SOURCE_FLAGS.get(source_name)
        if flag is None:
            return True
        return getattr(self.context, flag)

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of issues.

        Returns:
            List of validation issues (empty if valid)
        """
        issues = []

        if self.context.max_context_tokens <= 0:
            issues.append("max_context_tokens must be positive")

        if self.context.source_timeout is not None and self.context.source_timeout <= 0:
            issues.append("source_timeout must be positive when set")

        if self.tokenizer.backend not in ['auto', 'tiktoken', 'heuristic']:
            issues.append(f"Unknown tokenizer backend '{self.tokenizer.backend}'")

        if self.log_level not in LOG_LEVELS:
            issues.append(f"Invalid log level '{self.log_level}'")

        return issues


def get_default_config() -> GathererConfig:
    """Get the default configuration."""
    return GathererConfig.from_dict({
        'context': {
            'enable_serena': True,
            'enable_memory': True,
            'enable_cclsp': True,
            'max_context_tokens': 32000,
            'include_file_content': True
        },
        'tokenizer': {
            'backend': 'auto',
            'encoding_name': 'cl100k_base'
        },
        'log_level': 'INFO'
    })

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Configuration module for FlowMine
Handles YAML configuration files, command-line overrides and analysis defaults
"""

import os
import copy
import yaml
import logging
from typing import Dict, Any, Optional

from flowmine.exceptions import ConfigError

# Configure logger
logger = logging.getLogger(__name__)

# Default analysis configuration
DEFAULT_CONFIG = {
    'conformance': {
        'ideal_flow': [
            'Start Process',
            'Review Application',
            'Analyze Data',
            'Make Decision',
            'Complete Process',
        ],
        'extra_tolerance': 2,
        'missing_tolerance': 1,
        'order_penalty': 0.1,
        'conforming_threshold': 0.8,
        'partial_threshold': 0.5,
    },
    'bottlenecks': {
        'top_n': 8,
        'slow_transition_hours': 2.0,
        'overload_workload': 10,
        'error_rate_percent': 5.0,
        'variability_hours': 1.0,
    },
    'anomalies': {
        'source': 'none',
        'rate': 0.1,
        'seed': None,
    },
    'summaries': {
        'top_activities': 10,
    },
}

# Maps CLI argument names to dotted config keys
ARGUMENT_KEYS = {
    'ideal_flow': 'conformance.ideal_flow',
    'top_n': 'bottlenecks.top_n',
    'anomaly_source': 'anomalies.source',
    'anomaly_rate': 'anomalies.rate',
    'seed': 'anomalies.seed',
    'top_activities': 'summaries.top_activities',
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class Config:
    """Configuration class for FlowMine"""

    def __init__(self, config_file: Optional[str] = None, args: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration

        Args:
            config_file: Optional path to YAML configuration file
            args: Optional dictionary of arguments
        """
        self.config = copy.deepcopy(DEFAULT_CONFIG)

        # Load from file if provided
        if config_file:
            self._load_from_file(config_file)

        # Override with args if provided
        if args:
            self._update_from_args(args)

    def _load_from_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file

        Args:
            config_file: Path to YAML configuration file
        """
        if not os.path.exists(config_file):
            raise ConfigError(f"Configuration file not found: {config_file}")

        with open(config_file, 'r') as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigError(f"Configuration file {config_file} must contain a mapping")

        self.config = _deep_merge(self.config, loaded)
        logger.info(f"Loaded configuration from {config_file}")

    def _update_from_args(self, args: Dict[str, Any]) -> None:
        """
        Update configuration from arguments dictionary

        Only known arguments with a value other than None are applied.

        Args:
            args: Dictionary of arguments
        """
        # Convert argparse Namespace to dict if needed
        if hasattr(args, '__dict__'):
            args = vars(args)

        for arg_name, key in ARGUMENT_KEYS.items():
            value = args.get(arg_name)
            if value is not None:
                self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key, dotted for nested sections
            default: Default value if key not found

        Returns:
            Configuration value
        """
        node = self.config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value

        Args:
            key: Configuration key, dotted for nested sections
            value: Configuration value
        """
        parts = key.split('.')
        node = self.config
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    def section(self, name: str) -> Dict[str, Any]:
        """Copy of a top-level configuration section"""
        return copy.deepcopy(self.config.get(name, {}))

    def as_dict(self) -> Dict[str, Any]:
        """
        Get configuration as dictionary

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)

    def save(self, filepath: str) -> None:
        """
        Save configuration to file

        Args:
            filepath: Path to save configuration
        """
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(filepath, 'w') as f:
            yaml.safe_dump(self.config, f, default_flow_style=False)

        logger.info(f"Saved configuration to {filepath}")


def load_config_from_args(args):
    """
    Create a Config object from command-line arguments

    Args:
        args: ArgumentParser parsed arguments

    Returns:
        Config object
    """
    # Convert args to dict
    args_dict = vars(args)

    # Check if a config file was specified
    config_file = args_dict.get('config_file')

    # Create and return Config object
    return Config(config_file=config_file, args=args_dict)

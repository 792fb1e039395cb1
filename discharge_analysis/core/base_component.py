#!/usr/bin/env python3
"""
Base Component Class - Core functionality and configuration management
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional

import yaml

from .constants import (
    CONFIG_KEY_OUTPUT_DIRECTORY,
    CONFIG_KEY_VISUALIZATION,
    GLOBAL_DEFAULTS_STEM,
)


@dataclass
class PipelineContext:
    """Shared context for pipeline components to avoid repeated config/loading work."""
    config_file: Optional[Path]
    output_dir: Optional[Path]
    dataset_name: str
    config: Dict[str, Any]
    global_defaults: Dict[str, Any]
    logger: logging.Logger


class BaseComponent:
    """Base class for pipeline components with configuration management."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        output_directory: Optional[str] = None,
        context: Optional[PipelineContext] = None,
        config_override: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the component with configuration and output directory."""
        # Minimal logger for early setup; replaced once context is ready
        self.logger = logging.getLogger(self.__class__.__name__)

        # Reuse existing context when orchestrating multiple components
        if context:
            self._apply_context(context)
            return

        self.config_file = Path(config_file) if config_file else None

        # Load configuration (supports YAML/JSON); no file means defaults only
        self.config = self._load_configuration() if self.config_file else {}
        if config_override:
            self._merge_config(self.config, config_override)

        self.dataset_name = str(
            self.config.get('dataset_name')
            or (self.config_file.stem if self.config_file else 'discharges')
        ).lower().replace('-', '_')

        self.output_dir = self._resolve_output_directory(output_directory)
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        # Initialize logging once directories are available
        self.logger = self._setup_logging()

        self.global_defaults = self._load_global_defaults()

        # Persist context for reuse by other components
        self.context = PipelineContext(
            config_file=self.config_file,
            output_dir=self.output_dir,
            dataset_name=self.dataset_name,
            config=self.config,
            global_defaults=self.global_defaults,
            logger=self.logger,
        )

        self.logger.info(f"Initialized pipeline for {self.dataset_name}")

    def _apply_context(self, context: PipelineContext):
        """Attach an existing pipeline context (used by orchestrator to share state)."""
        self.context = context
        self.config_file = context.config_file
        self.output_dir = context.output_dir
        self.dataset_name = context.dataset_name
        self.config = context.config
        self.global_defaults = context.global_defaults
        self.logger = context.logger

    def _setup_logging(self) -> logging.Logger:
        """Setup logging configuration."""
        handlers = [logging.StreamHandler()]
        if self.output_dir is not None:
            log_dir = self.output_dir / "logs"
            log_dir.mkdir(exist_ok=True)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            handlers.append(logging.FileHandler(log_dir / f"pipeline_{timestamp}.log"))

        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers
        )

        return logging.getLogger(self.__class__.__name__)

    def _load_any_config(self, path: Path) -> Dict[str, Any]:
        """Load a YAML or JSON config file."""
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        try:
            if suffix in ['.yaml', '.yml']:
                with open(path, 'r', encoding='utf-8') as f:
                    return yaml.safe_load(f) or {}
            # Default to JSON
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {path}: {e}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {path}: {e}")

    def _load_configuration(self) -> Dict[str, Any]:
        """Load pipeline configuration from YAML or JSON file."""
        config = self._load_any_config(self.config_file)
        if not isinstance(config, dict):
            raise ValueError(f"Configuration file {self.config_file} must contain a mapping")
        self.logger.info(f"Loaded configuration from {self.config_file}")
        return config

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Deep-merge override dict into base config."""
        for key, value in (override or {}).items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _resolve_output_directory(self, output_directory: Optional[str]) -> Optional[Path]:
        """Explicit argument wins over the config; relative config paths sit beside the config file."""
        if output_directory:
            return Path(output_directory).expanduser()

        configured = self.config.get(CONFIG_KEY_OUTPUT_DIRECTORY)
        if not configured:
            return None

        candidate = Path(configured).expanduser()
        if not candidate.is_absolute() and self.config_file is not None:
            candidate = (self.config_file.parent / candidate).resolve()
        return candidate

    def _load_global_defaults(self) -> Dict[str, Any]:
        """Load global defaults configuration (supports YAML/JSON)."""
        try:
            defaults = self._load_auxiliary_config(GLOBAL_DEFAULTS_STEM)
            if defaults is None:
                return {}
            return defaults.get(GLOBAL_DEFAULTS_STEM, defaults)
        except Exception as e:
            self.logger.warning(f"Could not load global defaults: {e}")
            return {}

    def _load_auxiliary_config(self, stem: str) -> Optional[Dict[str, Any]]:
        """Load auxiliary config (global defaults) from YAML or JSON beside the main config."""
        if self.config_file is None:
            return None
        for ext in ['.yaml', '.yml', '.json']:
            candidate = self.config_file.parent / f"{stem}{ext}"
            if candidate.exists() and candidate != self.config_file:
                return self._load_any_config(candidate)
        return None

    def get_section(self, key: str) -> Dict[str, Any]:
        """Return a config section, or an empty mapping when absent."""
        section = self.config.get(key) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Configuration section '{key}' must be a mapping")
        return section

    def get_visualization_setting(self, key: str, default: Any = None) -> Any:
        """Visualization settings: dataset config first, then global defaults."""
        section = self.get_section(CONFIG_KEY_VISUALIZATION)
        if key in section:
            return section[key]
        return self.global_defaults.get('visualization_defaults', {}).get(key, default)

    def get_dataset_name(self) -> str:
        """Get the dataset name from config or the config filename."""
        return self.dataset_name

#!/usr/bin/env python3
"""
Base command class for the modular command architecture.

Provides common functionality and interface that all commands inherit.
Services come from the dependency injection container.
"""

import json
import logging
from abc import ABC, abstractmethod
from argparse import Namespace
from pathlib import Path
from typing import Any, List

from core.container import get_container
from core.exceptions import EventEngineError

logger = logging.getLogger(__name__)


class BaseCommand(ABC):
    """
    Base class for all command endpoints.

    Provides configuration, storage and service access plus the shared
    error handling every command uses.
    """

    def __init__(self, container=None):
        """
        Initialize base command with dependency injection container.

        Args:
            container: Optional container instance. If None, uses global container.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._container = container or get_container()

    @property
    def config(self):
        """Get configuration from container."""
        return self._container.get('config')

    @property
    def storage(self):
        """Get storage bundle from container."""
        return self._container.get('storage')

    def create_scan_service(self):
        return self._container.get('scan_service')

    def create_ingestion_service(self):
        return self._container.get('ingestion_service')

    @abstractmethod
    def execute(self, subcommand: str, args: Namespace) -> int:
        """
        Execute the command with given subcommand and arguments.

        Args:
            subcommand: The specific action to perform
            args: Parsed command line arguments

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        pass

    def get_available_subcommands(self) -> List[str]:
        """Public methods of the concrete command, minus the shared helpers."""
        shared = set(dir(BaseCommand))
        return [
            name for name in dir(self)
            if not name.startswith('_') and name not in shared and callable(getattr(self, name))
        ]

    def load_json_file(self, path: str) -> Any:
        """Read a JSON document from disk."""
        with Path(path).open('r', encoding='utf-8') as handle:
            return json.load(handle)

    def print_json(self, data: Any) -> None:
        print(json.dumps(data, indent=2, ensure_ascii=False))

    def handle_error(self, error: Exception, context: str = "") -> int:
        """
        Standard error handling for commands.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            Appropriate exit code
        """
        error_msg = f"{context}: {error}" if context else str(error)
        if isinstance(error, EventEngineError):
            self.logger.error(f"{error_msg} {error.to_dict()['context']}")
        else:
            self.logger.error(error_msg, exc_info=True)

        if isinstance(error, KeyboardInterrupt):
            self.logger.info("Command interrupted by user")
            return 130
        elif isinstance(error, FileNotFoundError):
            return 2
        elif isinstance(error, PermissionError):
            return 13
        elif isinstance(error, ValueError):
            return 22
        else:
            return 1

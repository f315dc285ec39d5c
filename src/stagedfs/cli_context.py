"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
operations facade, avoiding global state and enabling proper dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .operations import Operations, OpsConfig
from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Manages application-level dependencies (settings, operations facade) that
    are initialized once and shared across a CLI command execution.
    """
    settings: Settings
    config: OpsConfig = OpsConfig()
    _operations: Optional[Operations] = None

    @classmethod
    def from_env(cls, verbose: bool = False) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        settings = create_settings_from_env()
        return cls(settings=settings, config=OpsConfig(verbose=verbose))

    @property
    def operations(self) -> Operations:
        """
        Get or create the operations facade (lazy initialization).

        Gateways are chosen per URI scheme when a command runs, so creating
        the facade never touches a backend.
        """
        if self._operations is None:
            self._operations = Operations(self.settings, config=self.config)
        return self._operations

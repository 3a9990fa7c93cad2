"""
Handler notifier - runs the configured command once per transition.
"""

from pathlib import Path
from typing import Dict, List, Optional
import logging
import os
import subprocess

from .errors import HandlerSpawnError
from .models import Transition

logger = logging.getLogger(__name__)


def handler_search_path(handler_dir: Path, path: str = "") -> str:
    """Return PATH with the handler directory in front."""
    return f"{handler_dir}/:{path}" if path else f"{handler_dir}/"


class HandlerNotifier:
    """
    Spawns the handler program for each transition.

    The handler is started in its own session and never waited for. Its
    search path is extended with the user's HelloDevice config directory,
    so a handler script can live next to the config file.
    """

    def __init__(self, command: str, handler_dir: Path,
                 environ: Optional[Dict[str, str]] = None):
        """
        Initialize the notifier.

        Args:
            command: Handler program name or path
            handler_dir: Directory prepended to PATH for the handler
            environ: Base environment (defaults to os.environ)
        """
        self.command = command
        self.handler_dir = Path(handler_dir)
        self._environ = environ
        self.spawned = 0
        self.failed = 0

    def build_argv(self, transition: Transition) -> List[str]:
        """Arguments passed to the handler: -t <type> -i <id> <name>."""
        return [
            self.command,
            "-t", transition.transition_type.value,
            "-i", str(transition.device_id),
            transition.name,
        ]

    def build_env(self) -> Dict[str, str]:
        """Copy of the environment with the handler dir prefixed to PATH."""
        env = dict(os.environ if self._environ is None else self._environ)
        env["PATH"] = handler_search_path(self.handler_dir, env.get("PATH", ""))
        return env

    def spawn(self, transition: Transition) -> subprocess.Popen:
        """
        Launch the handler.

        Raises:
            HandlerSpawnError: The handler could not be started
        """
        try:
            return subprocess.Popen(
                self.build_argv(transition),
                cwd=str(Path.home()),
                env=self.build_env(),
                stdin=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, ValueError) as e:
            raise HandlerSpawnError(f"Failed to spawn command {self.command}: {e}") from e

    def notify(self, transition: Transition) -> bool:
        """
        Report a transition and run the handler for it.

        Returns:
            True if the handler was launched
        """
        logger.info(str(transition))
        try:
            process = self.spawn(transition)
        except HandlerSpawnError as e:
            self.failed += 1
            logger.error(str(e))
            return False

        self.spawned += 1
        logger.debug(f"Handler started with pid {process.pid}")
        return True

    def __call__(self, transition: Transition) -> None:
        self.notify(transition)

"""
Effect executors for lifecycle steps.

Every filesystem mutation and every privileged command goes through an
executor. The real executor performs it; the dry-run executor only
records what would be done. Both log and record the shell equivalent of
each action, so the two modes produce the same trace.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from typing import List

from ..utils.errors import ExternalCommandFailure, StepFailure
from .commands import SpaceCommand

logger = logging.getLogger(__name__)


class EffectExecutor(ABC):
    """Performs or records the side effects of a lifecycle operation."""

    dry_run = False

    def __init__(self):
        self.actions: List[str] = []

    def _record(self, description: str) -> None:
        self.actions.append(description)
        logger.info(description)

    def touch(self, path: str) -> None:
        self._record(f"touch {path}")
        self._apply(f"touch {path}", lambda: open(path, 'a').close())

    def chmod(self, path: str, mode: int) -> None:
        self._record(f"chmod {mode:o} {path}")
        self._apply(f"chmod {mode:o} {path}", lambda: os.chmod(path, mode))

    def symlink(self, target: str, link: str) -> None:
        self._record(f"ln -s {target} {link}")
        self._apply(f"ln -s {target} {link}", lambda: os.symlink(target, link))

    def unlink(self, path: str) -> None:
        self._record(f"rm {path}")
        self._apply(f"rm {path}", lambda: os.unlink(path))

    def rename(self, source: str, destination: str) -> None:
        self._record(f"mv {source} {destination}")
        self._apply(f"mv {source} {destination}", lambda: os.rename(source, destination))

    def run(self, command: SpaceCommand) -> None:
        self._record(str(command))
        self._run(command)

    @abstractmethod
    def _apply(self, description: str, effect) -> None:
        """Carry out one filesystem effect."""

    @abstractmethod
    def _run(self, command: SpaceCommand) -> None:
        """Carry out one privileged command."""


class RealExecutor(EffectExecutor):
    """Applies every effect to the live system."""

    def _apply(self, description: str, effect) -> None:
        try:
            effect()
        except OSError as e:
            logger.error(f"{description} failed: {str(e)}")
            raise StepFailure(description, e)

    def _run(self, command: SpaceCommand) -> None:
        try:
            completed = subprocess.run(command.argv, check=False)
        except OSError as e:
            logger.error(f"Cannot run {command}: {str(e)}")
            raise ExternalCommandFailure(str(command))
        if completed.returncode != 0:
            logger.error(f"{command} exited with status {completed.returncode}")
            raise ExternalCommandFailure(str(command), completed.returncode)
        logger.info("Space command completed successfully")


class DryRunExecutor(EffectExecutor):
    """Records every effect without applying it."""

    dry_run = True

    def _apply(self, description: str, effect) -> None:
        pass

    def _run(self, command: SpaceCommand) -> None:
        pass


def make_executor(dry_run: bool = False) -> EffectExecutor:
    return DryRunExecutor() if dry_run else RealExecutor()

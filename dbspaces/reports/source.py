"""Synchronous invocation of the engine's reporting commands."""

import logging
import os
import pwd
import subprocess
from typing import Callable, List, Optional

from ..config import base_config
from ..utils.errors import EngineUnreachable
from .parser import SpaceSummary, parse_space_summary
from .versions import FlagLayout, flag_layout_for

logger = logging.getLogger(__name__)

Runner = Callable[[List[str]], str]


def run_report(argv: List[str]) -> str:
    """Run a reporting command and return its standard output.

    A non-zero exit is not fatal by itself: the reporting tools exit
    non-zero when the engine is offline, and the parsers turn missing
    rows into EngineUnreachable.
    """
    logger.debug(f"Running {' '.join(argv)}")
    try:
        completed = subprocess.run(argv, capture_output=True, text=True, check=False)
    except OSError as e:
        raise EngineUnreachable(f"Cannot run {argv[0]}: {str(e)}")

    if completed.returncode != 0:
        logger.debug(f"{argv[0]} exited with status {completed.returncode}")
    return completed.stdout


def is_engine_owner(owner: Optional[str] = None) -> bool:
    """True when the caller may use the refreshed summary variant."""
    owner = owner or base_config.ENGINE_OWNER
    uid = os.geteuid()
    if uid == 0:
        return True
    try:
        return pwd.getpwuid(uid).pw_name == owner
    except KeyError:
        return False


class ReportSource:
    """Fetches and parses the three reports an inventory is built from."""

    def __init__(self, runner: Runner = run_report, privileged: Optional[bool] = None):
        self.runner = runner
        self.privileged = is_engine_owner() if privileged is None else privileged
        self._layout: Optional[FlagLayout] = None

    @property
    def layout(self) -> FlagLayout:
        """Flag layout of the live engine, detected on first use."""
        if self._layout is None:
            self._layout = flag_layout_for(self.runner([base_config.ONSTAT_COMMAND, '-']))
            logger.info(f"Using report layout for engine version {self._layout.major_version}")
        return self._layout

    def space_summary(self) -> SpaceSummary:
        """Summary of dbspaces and chunks, refreshed when privileged."""
        onstat = base_config.ONSTAT_COMMAND
        if self.privileged:
            try:
                return parse_space_summary(self.runner([onstat, '-d', 'update']), self.layout)
            except EngineUnreachable:
                logger.warning("Refreshed space summary unavailable; using standard summary")
        return parse_space_summary(self.runner([onstat, '-d']), self.layout)

    def log_report(self) -> str:
        return self.runner([base_config.ONSTAT_COMMAND, '-l'])

    def reserved_pages(self) -> str:
        return self.runner([base_config.ONCHECK_COMMAND, '-pr'])

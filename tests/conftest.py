"""Global test configuration and fixtures."""
import os
import sys
import logging

import pytest

from .common.test_helpers import StorageLayout, PROJECT_ROOT, SERVER

# Add project root to Python path for imports
sys.path.insert(0, str(PROJECT_ROOT))

# Test environment configuration
os.environ.setdefault('INFORMIXSERVER', SERVER)
os.environ.setdefault('DBSPACE_DEFAULTS', str(PROJECT_ROOT / 'tests' / 'no-such-defaults.cfg'))

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


@pytest.fixture
def layout(tmp_path):
    """Symlink, primary and mirror directories under a temporary root."""
    with StorageLayout(tmp_path / "storage") as storage:
        yield storage


@pytest.fixture
def defaults(layout):
    return layout.defaults

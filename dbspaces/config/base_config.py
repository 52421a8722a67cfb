"""
Environment settings for the dbspace manager.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Server Configuration
INFORMIXSERVER = os.getenv('INFORMIXSERVER', '')
ENGINE_OWNER = os.getenv('ENGINE_OWNER', 'informix')

# Defaults file
DBSPACE_DEFAULTS = os.getenv('DBSPACE_DEFAULTS', '/ifmx-work/dbspace-defaults.cfg')

# External tools
ONSTAT_COMMAND = os.getenv('ONSTAT_COMMAND', 'onstat')
ONCHECK_COMMAND = os.getenv('ONCHECK_COMMAND', 'oncheck')
ONSPACES_COMMAND = os.getenv('ONSPACES_COMMAND', 'onspaces')

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# topmark:header:start
#
#   project      : PubSniff
#   file         : constants.py
#   file_relpath : src/pubsniff/constants.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff Constants."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

try:
    PUBSNIFF_VERSION: str = get_version("pubsniff")
except PackageNotFoundError:  # running from a source checkout
    PUBSNIFF_VERSION = "0.0.0+unknown"

# Configuration file names, looked up from the working directory upwards.
CONFIG_FILE_NAME: str = "pubsniff.toml"
PYPROJECT_FILE_NAME: str = "pyproject.toml"
PYPROJECT_TOOL_TABLE: str = "pubsniff"

# Number of leading bytes fetched at once for magic-number and marker checks.
DEFAULT_PREFIX_LENGTH: int = 4096

DEFAULT_HTTP_TIMEOUT: float = 10.0
DEFAULT_USER_AGENT: str = f"pubsniff/{PUBSNIFF_VERSION}"

VALUE_NOT_SET: str = "<not set>"

# topmark:header:start
#
#   project      : PubSniff
#   file         : exit_codes.py
#   file_relpath : src/pubsniff/cli/exit_codes.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Standardized exit codes used by the PubSniff CLI.

Scripts can rely on these values to tell apart a failed run, a usage or
configuration problem, and a run where some targets could not be identified.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Standardized exit codes for the PubSniff CLI.

    Attributes:
        SUCCESS (int): Every target was identified.
        FAILURE (int): The command failed (I/O or unexpected error).
        USAGE_ERROR (int): Invalid flags or arguments.
        CONFIG_ERROR (int): A configuration file is invalid.
        UNRESOLVED (int): At least one target's format could not be determined.
    """

    SUCCESS = 0
    FAILURE = 1
    USAGE_ERROR = 2
    CONFIG_ERROR = 3
    UNRESOLVED = 4

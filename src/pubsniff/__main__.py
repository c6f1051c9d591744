# topmark:header:start
#
#   project      : PubSniff
#   file         : __main__.py
#   file_relpath : src/pubsniff/__main__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Module entry point for running PubSniff via ``python -m pubsniff``.

Examples:
    Identify a file using the module interface::

        python -m pubsniff sniff book.epub
"""

from __future__ import annotations

from pubsniff.cli.main import cli

if __name__ == "__main__":
    cli()

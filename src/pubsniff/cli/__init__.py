# topmark:header:start
#
#   project      : PubSniff
#   file         : __init__.py
#   file_relpath : src/pubsniff/cli/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Click command line interface for PubSniff."""

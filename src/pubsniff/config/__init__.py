# topmark:header:start
#
#   project      : PubSniff
#   file         : __init__.py
#   file_relpath : src/pubsniff/config/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff configuration: logging setup, TOML loading and the frozen `Config` model.

Import the model from `pubsniff.config.model`; this package module stays import-light
so `pubsniff.config.logging` can be used everywhere without cycles.
"""

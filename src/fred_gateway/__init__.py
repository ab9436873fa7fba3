"""FRED Gateway.

Federal Reserve Economic Data (series lookup, category/release/source browsing
and full-text search) served over REST and over MCP, with one validation and
dispatch core behind both.
"""

__version__ = "1.0.0"

"""
pkgcdn
Serves files, ES modules, metadata and directory listings out of extracted packages
"""

__version__ = "1.0.0"

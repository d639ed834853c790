"""
Salesforce Recent Changes Tool

A tool for listing recently created or modified metadata and generating a package.xml for it.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]

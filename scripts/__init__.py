"""
Scripts package for the GLPI notifier.

This package contains command-line scripts organized by functionality.

Subpackages:
- notifier: New-ticket notification daemon
"""

__version__ = "0.1.0"

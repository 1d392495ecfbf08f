# File: versioninfo/__init__.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

__version__ = "1.3.2"

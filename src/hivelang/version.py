"""
Central version constant for HiveLang.
"""

__version__ = "3.0.0"

# Language surface version (independent of the package version)
LANGUAGE_VERSION = "3"

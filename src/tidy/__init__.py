"""
Tidy: sort the files of a directory into extension-named subdirectories.
"""

__version__ = "0.1.0"

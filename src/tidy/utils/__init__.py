"""
Configuration, logging, error handling and progress tracking.
"""

"""
Shared utilities: logging, exceptions, phone normalization.
"""

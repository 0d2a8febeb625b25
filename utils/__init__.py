"""
Utilities - logging setup
"""

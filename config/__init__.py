"""
Configuration loaded from environment variables and .env
"""

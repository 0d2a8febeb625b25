"""
HTTP command facade
"""

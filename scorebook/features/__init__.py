"""
Player identity resolution.
"""

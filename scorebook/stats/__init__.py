"""
Season statistics.
"""

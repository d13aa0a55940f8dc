"""
Text extraction clients.
"""

"""
Scoresheet text parsing.
"""

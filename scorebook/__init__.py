"""
Club Scorebook: cricket scoresheet ingestion and season statistics.
"""

__version__ = "0.1.0"

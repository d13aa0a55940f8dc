"""
Data storage and the ingestion pipeline.
"""

"""
Data Ingestion Module

Turns raw dashboard rows into typed records:
- Security summaries (rank table)
- Per-security daily history (close, volume, point CVI)
"""

__version__ = "0.1.0"

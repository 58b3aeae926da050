"""
Google Sheets storage for the video catalog.
"""

from src.integrations.sheets.client import GoogleSheetsRepository, SCOPES

__all__ = [
    "GoogleSheetsRepository",
    "SCOPES",
]

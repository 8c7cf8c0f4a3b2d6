"""
Outreach Sync: keeps the Company Database (Registry) and the Outreach
Tracker spreadsheets structurally consistent under a dense company id space.
"""

__version__ = "0.3.0"

"""
focustray: per-application screen time accounting with usage-limit alerts.
"""

__version__ = "1.0.0"

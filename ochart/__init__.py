"""
ochart - OHLCV charting back-end utilities.
"""

__version__ = "1.0.0"

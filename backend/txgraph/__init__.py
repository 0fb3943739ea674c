"""
TxGraph - transaction graph analytics engine.
"""

__version__ = "1.0.0"

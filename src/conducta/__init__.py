"""
Conducta

Disciplinary incident lifecycle and validation engine for the school
administration client.
"""

__version__ = "0.1.0"

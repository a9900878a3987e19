"""
FinTrack - Core Package

Personal finance tracker core: an in-memory list of income and expense
transactions, kept in sync with a remote service when it is reachable
and with a local durable cache when it is not.

DESIGN PRINCIPLES:
1. Remote is authoritative when reachable
2. The local cache keeps the app usable offline
3. Bad input is rejected before anything is stored
4. Every sync decision is auditable
5. Storage and transport are swappable
"""

__version__ = "1.0.0"
__author__ = "FinTrack Team"

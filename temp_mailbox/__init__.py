"""Temp mailbox service: user accounts and JWT sessions"""

__version__ = "0.1.0"

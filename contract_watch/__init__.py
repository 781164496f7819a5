"""
Contract Watch
==============

Polls an on-chain contract (explorer page fingerprint or totalSupply()),
compares the result with the last stored snapshot, and raises workflow
alerts on change.
"""

__version__ = "1.0.0"

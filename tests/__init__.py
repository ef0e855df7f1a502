"""
Test suite for stakepool

Contains:
- tests/unit/          : Unit tests for individual modules and ledger scenarios
"""

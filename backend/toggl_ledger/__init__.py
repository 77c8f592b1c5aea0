"""
toggl-ledger: a local relational mirror of a Toggl account.
"""
__version__ = "0.1.0"

"""
Test package for toggl-ledger.

This package contains test suites for:
- Schema constraints of the local store
- Repository upserts and tag linking
- Toggl payload and report parameter models
- The Toggl REST client and its error mapping
- Account sync and the command-line interface
"""

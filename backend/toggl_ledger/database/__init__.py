"""
Local ledger store.

SQLAlchemy models, engine and session management, and the repository used
to write Toggl records into the store.
"""

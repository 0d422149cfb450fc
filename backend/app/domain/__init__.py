"""
Business rules over plain values.

Nothing in this package touches the database: functions take an immutable
snapshot, apply one mutation and return the new snapshot, leaving the
service layer to copy the result onto the ORM row.
"""

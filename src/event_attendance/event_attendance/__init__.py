"""Event Attendance package.

Identity and attendance resolution for event check-in: signed tickets and sessions,
participant attribute and primary-unit resolution, an idempotent attendance ledger and
request rate limiting, exposed through thin Flask controllers over service/repository
layers.
"""

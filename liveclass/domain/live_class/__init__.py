"""
Live class domain logic.

Includes:
- lifecycle: create, update, start, end, cancel.
- roster: join, leave, participant listing.
- queries: get and list with visibility filtering.
"""

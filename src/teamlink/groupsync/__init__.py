"""Group sync bounded context.

Keeps group memberships in target systems synchronized with an
authoritative source system.
"""

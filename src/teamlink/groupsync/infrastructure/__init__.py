"""Infrastructure for the group sync bounded context.

Static identity mappers, mapping file loaders, the in-memory reference
adapter with its JSON snapshot format, and credential providers.
"""

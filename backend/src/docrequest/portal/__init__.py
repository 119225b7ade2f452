"""Anonymous, token-scoped surface of the system.

Nothing in this package imports operator services; the portal reads and
writes DocumentRequest state through its own code path, sharing only the
row-level status and counter primitives of requests.lifecycle.
"""

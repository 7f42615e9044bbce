"""Domain models and errors.

Why:
- Pure, strict data structures (Pydantic v2) live here.
- The domain knows nothing about HTTP, the CLI or the filesystem: only the
  vocabulary of a provisioning run (requests, sources, errors).
"""

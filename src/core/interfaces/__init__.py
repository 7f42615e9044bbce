"""Core interfaces/abstractions.

Why:
- Defines the contracts (Protocol) that concrete executors and adapters
  implement.
- Inverts dependencies: the Core depends on abstractions, so the real
  filesystem, download cache and PKI generator are swappable in tests.
"""

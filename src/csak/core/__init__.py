"""
csak Core Module

Shared building blocks: configuration-free Cardano primitives including
addresses, networks, hashing, Ed25519 helpers and the exception hierarchy.
"""

__all__ = []

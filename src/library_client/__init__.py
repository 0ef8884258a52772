"""
Library reservations client package.

Client for browsing a book catalog and managing the reader's book
reservations (reserve, take, return, cancel) against a REST backend.

Key Components:
- models: Pydantic models for books and reservations
- reservations: status derivation, reservation picking and the mutation
  orchestrator that keeps the local read model coherent
- cache: key-addressed read cache with prefix invalidation
- api: async REST transport
- config: Configuration management with Pydantic v2
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]

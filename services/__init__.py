"""
services — domain operations over the store.

Provides:
  • ``CredentialStore`` — users, password checks, profile updates
  • ``OwnerScopedRepository`` — shared per-user CRUD shape
  • ``CategoryRepository`` / ``ExpenseRepository``
"""

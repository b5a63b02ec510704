"""
Surveillance session domain logic.

Includes:
- auth: Pluggable credential validation.
- registry: Per-session handle and client registry.
- gateway: Request flow from credentials to join token.
"""

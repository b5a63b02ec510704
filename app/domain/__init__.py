"""
Domain layer containing core business logic and domain services.

Submodules:
- surveillance: Surveillance session gateway (authentication, session and
  camera ensuring, token minting).
"""

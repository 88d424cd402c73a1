"""
Weather Data API - Weather station readings behind role-gated access

A REST API over two document collections (users and weather readings)
with header-token authentication and role-based access control.

Architecture:
- Each module is self-contained with clear interfaces
- Modules receive their Redis client through the constructor
- The API layer only orchestrates; logic lives in the modules

Modules:
- storage: Redis connection lifecycle
- auth: Password hashing, login/logout/registration, error taxonomy
- middleware: Per-route access guard
- users: Credential store
- readings: Weather reading store and queries
- api: Request/response models and routers
"""

__version__ = "1.0.0"

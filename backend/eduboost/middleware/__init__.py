"""
EduBoost Gateway — Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → Route (auth → validation → service)

    Why this order:
    1. Request ID first so every later log line carries the correlation ID
    2. Logging wraps the rest so rate-limited responses are logged too
    3. Rate limit before any route code: rejected requests never reach auth,
       body parsing or the upstream API
"""

"""
EduBoost Gateway — API Routes Package
======================================

Route Inventory (all mounted under settings.api_prefix, default /api):
    - auth.py:    POST /auth/login, POST /auth/prof-login, GET /auth/status
    - study.py:   POST /summarize, POST /flashcards, POST /podcast   (auth required)
    - health.py:  GET  /health

Design Principle:
    Routes are THIN: read the body, validate one field, call a service,
    wrap the result. Errors propagate as ApiError to the global handlers.
"""

"""
EduBoost Gateway — Application Package Initializer
===================================================

What: Marks the `eduboost` directory as a Python package.
Why:  Enables module imports like `from eduboost.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The gateway sits between the browser and the upstream AI API:

    ┌─────────────────────────────────────┐
    │   Middleware (rate limit, req ID)   │  ← every /api request
    ├─────────────────────────────────────┤
    │   Routes + Dependencies (auth)      │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services                          │  ← validation, sessions,
    │                                     │    rate buckets, upstream calls
    ├─────────────────────────────────────┤
    │   Exceptions (ApiError)             │  ← one error shape for all paths
    └─────────────────────────────────────┘

    All state (sessions, rate buckets) lives in memory in a single process.
    Restarting the server logs everyone out and resets every rate window.
"""

__version__ = "1.0.0"

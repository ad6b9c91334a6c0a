"""
Taskboard API: Middleware Package
==================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [Rate Limit] → [CORS] → Route Handler

    1. Request ID sets the correlation id used by every later log line and
       error body, the rate limiter's 429 included
    2. Logging records method, path, status and duration
    3. Rate Limit rejects abusive clients before any route work
    4. CORS (FastAPI's CORSMiddleware) answers preflight requests

    Responses travel back through the same chain in reverse.
"""

# Middleware package init
"""
StoreFinder Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error payloads
    2. Logging: access line with status and duration (sees the request ID)
    3. GZip / CORS: Starlette's own middleware

Responses travel back through the chain in reverse, so the logging
middleware sees the final status code and the X-Request-ID header is set
on every response the application handles.
"""

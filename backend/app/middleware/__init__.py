# Middleware package init
"""
RequestGraph Backend — Middleware Package
==========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: Generate correlation ID for logging and error bodies
    2. Logging: Log request details with the generated request ID
    3. GZip / CORS: Provided by FastAPI

    The order is reversed for responses, so the X-Request-ID header is
    attached last and the logged duration covers the whole handler.
"""

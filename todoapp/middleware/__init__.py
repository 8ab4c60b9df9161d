# Middleware package init
"""
Todo Service — Middleware Package
==================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [User Identity] → [Method Override] → [Logging]
            → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and the X-Request-ID header
    2. User Identity: userid cookie → request Locals
    3. Method Override: POST ?_method=PATCH|DELETE → PATCH|DELETE
    4. Logging: access log with both IDs and the effective method
"""

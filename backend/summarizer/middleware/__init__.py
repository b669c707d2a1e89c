# Middleware package init
"""
Summarizer API — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Security Headers] → [Request ID] → [Logging] → [CORS]
            → [Security Pipeline] → [Body Size Limit] → Route Handler

    Why this order:
    1. Security headers outermost: every response gets them, denials included
    2. Request ID before logging so access lines carry the correlation ID
    3. Logging wraps CORS and the pipeline, so denials are logged with status
    4. CORS answers preflights before the pipeline sees them
    5. Security pipeline: runs only for protected paths, before the request
       body is read
    6. Body size limit innermost: only allowed requests are buffered
"""

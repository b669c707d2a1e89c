# Routes package init
"""
Summarizer API — API Routes Package
=====================================

Route Inventory:
    - summarize.py: POST /api/summarize  (protected by the security pipeline)
    - health.py:    GET  /api/health     (unauthenticated)

Routes stay THIN: security lives in middleware, logic in services.
"""

"""
Summarizer API — Application Package
======================================

What: AI text summarization service protected by a layered security pipeline.

Architecture Note:
    ┌─────────────────────────────────────┐
    │        Middleware (HTTP edge)       │  ← headers, request IDs, access log
    ├─────────────────────────────────────┤
    │        Security Pipeline            │  ← origin, browser, shield, session, signature
    ├─────────────────────────────────────┤
    │        Routes (API Layer)           │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │        Services (Business Logic)    │  ← summarization, stats, AI provider
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

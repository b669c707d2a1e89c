# Services package init
"""
Summarizer API — Services Layer
=================================

Service Inventory:
    - LLMService (abstract): Interface for AI summarization providers
    - GeminiService: Google Gemini implementation with retry + circuit breaker
    - SummaryService: Runs a summarization and computes text stats
"""

"""
Blog Backend - Middleware Package
===================================

Cross-cutting concerns applied to every request.

Execution order (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

Request ID runs before Logging so each access-log line carries the id;
Rate Limit runs first so rejected clients cost nothing downstream.
"""

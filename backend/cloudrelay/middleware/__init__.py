"""
Cloud Relay — Middleware Package
==================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: rejected requests never reach a provider call
    2. Request ID: correlation id for the access log and the response header
    3. Logging: one access line per request with status and duration
"""

# Middleware package init
"""
CaterHub Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.
Why:   Request correlation, access logging and login throttling are needed
       across routes without repeating code in each handler.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit FIRST: reject credential stuffing on /auth before any work
    2. Request ID: correlation ID for logs and error envelopes
    3. Logging: one access line per request with status and duration

    Responses pass back through the chain in reverse, so the request ID
    header and the logged status reflect the final response.
"""

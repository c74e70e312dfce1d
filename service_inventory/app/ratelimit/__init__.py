"""
Rate limiting package for the inventory service.

Holds the fixed-window limiter and the middleware that applies it per
request identity.
"""

"""
Inventory service package.

Fronts the document store with a Redis cache-aside layer and guards it with
a per-identity fixed-window rate limiter.

Structure:
- app.main: FastAPI app, lifespan and middleware wiring.
- app.store: Key-value store contract and Redis adapter.
- app.caching: Key naming, TTL table and the cache-aside coordinator.
- app.ratelimit: Fixed-window limiter and its HTTP middleware.
"""

"""
Inventory caching package.

Cache-aside reads, write-through updates and version-counter invalidation of
listing pages. Entries are never deleted explicitly; they expire by TTL.
"""

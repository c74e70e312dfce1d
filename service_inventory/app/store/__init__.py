"""
Key-value store package.

Holds the contract the cache layer relies on and the Redis adapter that
implements it. Values are JSON; counters are native Redis integers.
"""

"""
Typed cache-aside layer for Valkey.

Cache keys are namespaced by the type of the item they address, items are
read and written through pluggable serializers, and groups of keys can be
invalidated by substring pattern.
"""

__version__ = "0.1.0"

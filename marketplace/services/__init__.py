"""
Listing lifecycle and negotiation engine.

Each module exposes plain functions taking the already-authenticated actor
id first. They return model instances or simple values and raise
``marketplace.exceptions.MarketplaceError`` subclasses on failure. Cache
invalidation and UI refresh are left to the caller.
"""

"""
=============================================================================
BUILT-IN HANDLERS
=============================================================================

Handlers that ship with the engine itself rather than with an application.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ static.py   Fallback file serving when no route matches              │
    └─────────────────────────────────────────────────────────────────────┘

Usage:

    from microweb.handlers import StaticAssetResolver

    resolver = StaticAssetResolver("public")
    asset = resolver.serve("/")          # → public/index.html
    asset.found, asset.content_type

=============================================================================
"""

from .static import StaticAsset, StaticAssetResolver, DEFAULT_STATIC_ROOT

__all__ = [
    "StaticAsset",
    "StaticAssetResolver",
    "DEFAULT_STATIC_ROOT",
]

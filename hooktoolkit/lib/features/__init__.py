"""Built-in features.

Each module exposes ``handle(ctx, config) -> HandlerResult | None`` and is
imported lazily by the feature registry.
"""

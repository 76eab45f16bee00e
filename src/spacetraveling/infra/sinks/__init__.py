"""Output sinks for generated pages."""

from spacetraveling.infra.sinks.static import StaticSiteSink

__all__ = ["StaticSiteSink"]

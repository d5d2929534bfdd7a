from .aggregator import ContextAggregator, resolve_universe

__all__ = ["ContextAggregator", "resolve_universe"]

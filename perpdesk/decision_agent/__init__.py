"""Perpetual futures decision agent: context aggregation, oracle call and risk validation."""

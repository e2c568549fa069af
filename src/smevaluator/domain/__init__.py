"""Domain layer: immutable models, exceptions and the valuation services."""

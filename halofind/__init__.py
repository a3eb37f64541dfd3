"""Halo-finding building blocks: configuration, cosmology, spatial trees, friends-of-friends grouping and checked I/O."""

__version__ = "0.1.0"
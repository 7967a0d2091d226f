"""Pinboard API: users, posts, images and tags with keyset pagination."""

__version__ = "1.0.0"

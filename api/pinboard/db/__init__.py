"""Database access for Pinboard API."""

"""Kithu - salary transparency API."""

"""Pluggable OAuth2 external-identity providers."""

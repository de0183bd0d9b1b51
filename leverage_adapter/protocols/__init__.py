"""Lending protocol implementations."""

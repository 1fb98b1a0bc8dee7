"""Concrete adapters implementing the ports."""

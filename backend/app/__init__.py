"""Marketplace backend application package."""

"""Structural validation for diagram states."""

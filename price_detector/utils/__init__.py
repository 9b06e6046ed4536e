"""Utility functions for markup handling."""

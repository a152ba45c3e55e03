"""Shared utilities for fred_loader."""

"""Shared helpers for the ai-policies test suite."""

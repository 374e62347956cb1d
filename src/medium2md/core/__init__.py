"""Core import orchestration."""

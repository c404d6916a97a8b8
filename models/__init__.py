"""Shared data models and exceptions."""

"""Workflows: end-to-end packaging passes."""

"""Execution and infrastructure utilities shared by report flows."""

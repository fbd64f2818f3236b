"""
Integration tests for the block explorer export path.

These tests drive the tracer, import hook and export job together against an
in-memory SQLite store.
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/utils/__init__.py
"""Utility helpers for escaping markdown and embedding images."""

"""Canonical graph construction, row normalization and loading."""

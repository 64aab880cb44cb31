"""Utility helpers for ghux."""

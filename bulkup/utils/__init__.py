"""Utility helpers for bulkup."""

"""Tests for the target package."""

"""Tests for the builder package."""

"""Tests for the status package."""

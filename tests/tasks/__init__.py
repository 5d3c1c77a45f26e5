"""Tests for the tasks package."""

"""Tests for the scheduler package."""

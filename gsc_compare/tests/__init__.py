"""Tests for the snapshot comparison engine."""

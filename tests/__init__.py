"""Tests for the NeoHub integration."""

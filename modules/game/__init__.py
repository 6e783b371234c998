"""Gesture game loop."""

"""Cycle timeout timer and feedback phrases."""

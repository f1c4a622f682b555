"""Offline form synchronization service."""

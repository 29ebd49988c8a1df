"""Data models for dnote doctor."""

"""Core configuration and canonical record types."""

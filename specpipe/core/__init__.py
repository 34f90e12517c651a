"""Core configuration, models and exceptions for specpipe."""

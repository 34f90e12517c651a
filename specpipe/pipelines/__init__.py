"""
Pipelines for specpipe.
"""

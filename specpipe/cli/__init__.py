"""
CLI for specpipe.
"""

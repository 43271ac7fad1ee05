"""
Small helpers shared across layers: formatting, paths and config validation.
"""

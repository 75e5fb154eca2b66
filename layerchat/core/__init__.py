"""
Core module for LayerChat.

This package contains settings, governance pattern tables, the error
taxonomy, and the application context.
"""

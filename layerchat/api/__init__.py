"""
HTTP routes: chat, streaming, health and governance administration.
"""

"""
LayerChat: governed chat orchestration with tool augmentation and streaming.
"""

__version__ = "0.1.0"

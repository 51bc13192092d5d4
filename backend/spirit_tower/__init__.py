"""
Spirit Tower - Sentinel/Guide roleplay backend and attribute extractor.
"""

__version__ = "0.1.0"

"""
Tapestry: local-first persistence for a visual knowledge-graph editor.
"""

__version__ = "1.0.0"

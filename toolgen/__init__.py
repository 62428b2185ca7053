"""
Toolgen - turns a free-text request into a self-contained HTML tool.
"""

__version__ = "0.1.0"

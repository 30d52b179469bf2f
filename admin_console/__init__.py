"""
Admin console backend: site mode configuration + cached platform settings
"""

__version__ = "1.0.0"

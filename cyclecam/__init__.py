"""
Canned-cycle G-code interpreter and contour toolpath generator.
"""

__version__ = "0.1.0"

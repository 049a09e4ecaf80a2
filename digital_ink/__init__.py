"""
Digital Ink: freehand annotation of patient intake PDFs with AI extraction.
"""

__version__ = "0.1.0"

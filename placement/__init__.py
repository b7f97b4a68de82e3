"""Text placement solver for slide editors.

Keeps text lines inside the content region, off the background subject's
silhouette and clear of each other.
"""

__version__ = "0.1.0"

"""DocAssist: context-augmented document and image generation."""

__version__ = "0.1.0"

"""Image generation adapter package.

Provides the multimodal client that requests TEXT and IMAGE modalities and
demultiplexes inline base64 image parts from accompanying text.
"""

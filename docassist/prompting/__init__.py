"""Prompting package.

Deterministic prompt-construction helpers. No retrieval, token-budget
enforcement, or model invocation happens here.
"""

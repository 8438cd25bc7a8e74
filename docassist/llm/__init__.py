"""Text-generation access package.

Module split:
    - `provider_config`: environment-driven endpoint, model, and slot settings.
    - `client`: chat-completion transport and response-envelope parsing.
"""

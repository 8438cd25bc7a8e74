"""Core orchestration package.

Composition:
    - `engine`: wires credential lookup, context aggregation, prompt composition,
      and the two generation clients.
    - `types`: result contracts shared by clients, engine, and adapters.
"""

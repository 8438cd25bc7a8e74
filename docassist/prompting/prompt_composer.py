"""Prompt composition for context-augmented generation.

This module only merges already-gathered context with a user instruction.
Context gathering, token budgeting, and model invocation happen elsewhere;
oversized prompts are rejected by the provider and surface as provider errors.

Design constraints:
    - Deterministic for identical inputs.
    - No I/O, no global state mutation.
"""

CONTEXT_TEMPLATE = "Based on the following context:\n\n{context}\n\n---\n\n{instruction}"


def compose(context: str, instruction: str) -> str:
    """Merge context and instruction into one outbound prompt.

    Args:
        context: Aggregated context text (may be empty or whitespace).
        instruction: Raw user instruction.

    Returns:
        The framed prompt when `context` has non-whitespace content, otherwise
        `instruction` unchanged.
    """
    if not context or not context.strip():
        return instruction

    return CONTEXT_TEMPLATE.format(context=context, instruction=instruction)

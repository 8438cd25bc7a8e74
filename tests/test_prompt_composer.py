from docassist.prompting.prompt_composer import compose


def test_empty_context_returns_instruction_verbatim():
    assert compose("", "write X") == "write X"


def test_whitespace_context_is_treated_as_empty():
    assert compose("  ", "write X") == "write X"
    assert compose("\n\t\n", "  write X  ") == "  write X  "


def test_context_is_framed_before_instruction():
    assert compose("CTX", "write X") == (
        "Based on the following context:\n\nCTX\n\n---\n\nwrite X"
    )


def test_context_is_not_truncated():
    context = "x" * 100_000
    assert compose(context, "go").endswith(context + "\n\n---\n\ngo")

"""Judge prompts. Each asks for a bare 0-100 number."""

_SCORE_FOOTER = """Respond with ONLY a number between 0 and 100. No explanation.

Score:"""


def build_relevance_prompt(input_text: str, output: str) -> str:
    """Judge how well the output addresses the input."""
    return f"""You are an expert evaluator. Rate how well the output addresses the input on a scale of 0-100.

Input: {input_text}

Output: {output}

Consider:
- Does the output directly address the input?
- Is it on-topic and focused?
- Does it answer what was asked?

{_SCORE_FOOTER}"""


def build_accuracy_prompt(input_text: str, expected_output: str, actual_output: str) -> str:
    """Judge factual accuracy against the expected output."""
    return f"""You are an expert evaluator. Rate the factual accuracy of the output compared to the expected output on a scale of 0-100.

Input: {input_text}

Expected Output: {expected_output}

Actual Output: {actual_output}

Consider:
- Factual correctness
- Alignment with expected output
- No hallucinations or errors

{_SCORE_FOOTER}"""


def build_readability_prompt(output: str) -> str:
    """Judge clarity and structure of the output."""
    return f"""You are an expert evaluator. Rate the readability and clarity of this output on a scale of 0-100.

Output: {output}

Consider:
- Clear structure and organization
- Easy to understand
- Good grammar and formatting
- Appropriate tone and style

{_SCORE_FOOTER}"""

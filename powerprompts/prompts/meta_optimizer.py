"""Meta-prompts for recursive critique-and-rewrite."""

from powerprompts.types import Metrics


def _format_metrics(metrics: Metrics) -> str:
    return f"""Current Metrics:
- Relevance: {metrics.relevance}/100
- Accuracy: {metrics.accuracy}/100
- Consistency: {metrics.consistency}/100
- Efficiency: {metrics.efficiency}/100
- Readability: {metrics.readability}/100

"""


def build_critique_prompt(prompt: str, metrics: Metrics | None = None) -> str:
    """
    Prompt asking for 3-5 specific weaknesses of ``prompt``.

    Args:
        prompt: Current prompt text
        metrics: Scores of the current prompt; the metrics section is
            omitted when not supplied

    Returns:
        Meta-prompt text
    """
    metrics_section = _format_metrics(metrics) if metrics is not None else ""
    return f"""You are an expert prompt engineer performing a critical analysis.

Analyze this prompt and identify 3-5 specific weaknesses or areas for improvement:

<prompt>
{prompt}
</prompt>

{metrics_section}Focus on:
1. Clarity and specificity
2. Missing context or constraints
3. Ambiguous instructions
4. Potential for better structure
5. Opportunities for improvement

Provide a structured critique with specific, actionable points.

Critique:"""


def build_improvement_prompt(prompt: str, critique: str) -> str:
    """Prompt asking for a rewrite that addresses ``critique`` and keeps the tag structure."""
    return f"""You are an expert prompt engineer. Improve this prompt based on the critique while preserving its XML structure.

Original Prompt:
<prompt>
{prompt}
</prompt>

Critique:
{critique}

Instructions:
1. Address each point in the critique
2. PRESERVE the XML tag structure (do not change tag names)
3. Improve clarity, specificity, and effectiveness
4. Add missing context or constraints
5. Fix ambiguities and structural issues

Generate the improved prompt with the SAME XML structure:"""


# Second step of the chained execution path
REFINEMENT_STEP_PROMPT = """Review the previous answer against the task above. Fix any mistakes, fill gaps, and tighten the wording. Respond with the final answer only."""

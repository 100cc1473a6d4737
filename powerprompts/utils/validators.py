"""Request checks that warn rather than reject."""

import logging

logger = logging.getLogger(__name__)


def check_technique_compatibility(techniques: list[str] | set[str] | frozenset[str]) -> list[str]:
    """
    Return human-readable warnings for technique combinations that work poorly.

    Every combination is allowed; these are hints for the caller.

    Args:
        techniques: Enabled technique ids

    Returns:
        List of warning messages (empty when nothing stands out)
    """
    enabled = set(techniques)
    warnings: list[str] = []

    if "tot" in enabled and "cot" not in enabled:
        warnings.append("Tree of Thoughts (tot) works best with Chain-of-Thought (cot) enabled")
    if "self_consistency" in enabled and "cot" not in enabled:
        warnings.append("Self-Consistency works best with Chain-of-Thought (cot) enabled")
    if "self_consistency" in enabled and "tot" in enabled:
        warnings.append("Self-Consistency takes precedence over Tree of Thoughts; tot is unused")
    if "rag" in enabled and "prompt_chaining" in enabled:
        warnings.append("Using RAG with Prompt Chaining may consume many tokens")

    for warning in warnings:
        logger.info(f"Technique compatibility: {warning}")
    return warnings

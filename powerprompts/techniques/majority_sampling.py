"""Self-consistency: sample several paths and return the majority answer."""

import asyncio
import difflib
import logging

from pydantic import BaseModel

from powerprompts.clients import CompletionClient

logger = logging.getLogger(__name__)

MAX_TEMPERATURE = 2.0


class SampledPath(BaseModel):
    """One sampled completion."""

    temperature: float
    text: str


class VoteResult(BaseModel):
    """Outcome of majority voting over sampled paths."""

    winner: str
    paths: list[SampledPath]
    clusters: list[list[int]]


def normalize(text: str) -> str:
    """Case-fold and collapse whitespace for comparison."""
    return " ".join(text.lower().split())


def similarity(a: str, b: str) -> float:
    """Similarity ratio in [0, 1] of two normalized texts."""
    return difflib.SequenceMatcher(None, a, b).ratio()


def cluster_outputs(outputs: list[str], threshold: float = 0.8) -> list[list[int]]:
    """
    Group outputs that agree with each other.

    Each output joins the first cluster whose founding member it resembles
    at least ``threshold``; otherwise it starts a new cluster.

    Args:
        outputs: Candidate answers
        threshold: Minimum similarity to join a cluster

    Returns:
        Clusters as lists of indices into ``outputs``, in order of creation
    """
    normalized = [normalize(output) for output in outputs]
    clusters: list[list[int]] = []
    for index, text in enumerate(normalized):
        for cluster in clusters:
            if similarity(normalized[cluster[0]], text) >= threshold:
                cluster.append(index)
                break
        else:
            clusters.append([index])
    return clusters


def select_majority(outputs: list[str], threshold: float = 0.8) -> tuple[int, list[list[int]]]:
    """
    Pick the representative answer of the largest cluster.

    Ties between clusters go to the one created first. Within the winning
    cluster the member with the highest mean similarity to the others wins.

    Args:
        outputs: Candidate answers (non-empty)
        threshold: Minimum similarity to join a cluster

    Returns:
        Tuple of (index of the winning output, clusters)
    """
    if not outputs:
        raise ValueError("select_majority requires at least one output")

    clusters = cluster_outputs(outputs, threshold)
    largest = max(clusters, key=len)
    if len(largest) == 1:
        return largest[0], clusters

    normalized = {i: normalize(outputs[i]) for i in largest}

    def centrality(index: int) -> float:
        others = [j for j in largest if j != index]
        return sum(similarity(normalized[index], normalized[j]) for j in others) / len(others)

    return max(largest, key=centrality), clusters


class MajoritySampler:
    """Runs K concurrent completions at rising temperatures and votes."""

    def __init__(
        self,
        client: CompletionClient,
        paths: int = 3,
        base_temperature: float = 0.7,
        temperature_step: float = 0.2,
        similarity_threshold: float = 0.8,
    ):
        self.client = client
        self.paths = paths
        self.base_temperature = base_temperature
        self.temperature_step = temperature_step
        self.similarity_threshold = similarity_threshold

    def temperatures(self) -> list[float]:
        """Sampling temperature of each path."""
        return [
            min(MAX_TEMPERATURE, round(self.base_temperature + i * self.temperature_step, 2))
            for i in range(self.paths)
        ]

    async def sample(
        self,
        prompt: str,
        input_text: str,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> VoteResult:
        """
        Sample all paths for one (prompt, input) pair and vote.

        Failed paths are dropped; if every path fails the last error is raised.

        Args:
            prompt: Prompt text
            input_text: Example input
            model: Model id (None uses the client default)
            max_tokens: Completion token cap

        Returns:
            Vote result with the winning text
        """
        full_prompt = f"{prompt}\n\nInput: {input_text}"
        temperatures = self.temperatures()
        logger.info(f"Sampling {len(temperatures)} paths at temperatures {temperatures}")

        results = await asyncio.gather(
            *[
                self.client.complete(
                    full_prompt, model=model, temperature=temperature, max_tokens=max_tokens
                )
                for temperature in temperatures
            ],
            return_exceptions=True,
        )

        paths: list[SampledPath] = []
        last_error: BaseException | None = None
        for temperature, result in zip(temperatures, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Sampled path at temperature {temperature} failed: {result}")
                last_error = result
                continue
            paths.append(SampledPath(temperature=temperature, text=result))

        if not paths:
            if last_error is None:
                raise ValueError("Majority sampling needs at least one path")
            raise last_error

        winner, clusters = select_majority([p.text for p in paths], self.similarity_threshold)
        logger.info(
            f"Majority vote: {len(clusters)} clusters, winner from cluster of "
            f"{max(len(c) for c in clusters)}/{len(paths)}"
        )
        return VoteResult(winner=paths[winner].text, paths=paths, clusters=clusters)

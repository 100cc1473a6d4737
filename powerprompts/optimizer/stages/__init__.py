"""Optimization pipeline stages."""

from powerprompts.optimizer.stages.generate_dataset import GenerateDatasetStage
from powerprompts.optimizer.stages.run_iterations import RunIterationsStage
from powerprompts.optimizer.stages.select_best import SelectBestStage, select_best_version
from powerprompts.optimizer.stages.structure_prompt import StructurePromptStage

__all__ = [
    "GenerateDatasetStage",
    "StructurePromptStage",
    "RunIterationsStage",
    "SelectBestStage",
    "select_best_version",
]

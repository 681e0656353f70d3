from repomap.pipeline.context import PipelineContext, SynthesisContext, SynthesisStage
from repomap.pipeline.controller import PipelineController
from repomap.pipeline.synthesis import DiagramSynthesisPipeline

__all__ = [
    "PipelineContext",
    "SynthesisContext",
    "SynthesisStage",
    "PipelineController",
    "DiagramSynthesisPipeline",
]

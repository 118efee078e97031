from .dsl import sh, uses, pipeline, PipelineBuilder, build
from .runner import run_pipeline, load_workflow
from .model import Event, Pipeline, Step, Trigger
from .secrets import SecretStore

__all__ = [
    "sh",
    "uses",
    "pipeline",
    "PipelineBuilder",
    "build",
    "run_pipeline",
    "load_workflow",
    "Event",
    "Pipeline",
    "Step",
    "Trigger",
    "SecretStore",
]

from .dsl import uses, sh, checkout, rust_toolchain, tarpaulin, coveralls, coverage_steps, pipeline, wf, PipelineBuilder, build
from .runner import Runner, run_pipeline
from .model import Step, Pipeline, Workflow, Run, RunStatus, StepResult, Trigger
from .config import RunnerConfig
from .errors import CIError, ConfigurationError, StepExecutionError, StepTimeoutError

__all__ = [
    "uses", "sh", "checkout", "rust_toolchain", "tarpaulin", "coveralls", "coverage_steps",
    "pipeline", "wf", "PipelineBuilder", "build",
    "Runner", "run_pipeline",
    "Step", "Pipeline", "Workflow", "Run", "RunStatus", "StepResult", "Trigger",
    "RunnerConfig",
    "CIError", "ConfigurationError", "StepExecutionError", "StepTimeoutError",
]

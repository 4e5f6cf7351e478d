"""Pipeline - the single entry point a host calls once per build.

Flow:
    ArchiveScanner -> Stager -> PathResolver -> build_protoc_command -> run_protoc

A host supplies the project root, the resolved artifact list and a LogSink.
Per-item problems (bad archive, missing include path, ...) are reported and
skipped. A compiler that fails to start or exits nonzero makes the run fail,
which comes back in the PipelineResult instead of being raised.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .command import build_protoc_command
from .config import ProtocConfig
from .output import LogSink
from .paths import PathResolver
from .runner import CompileResult, run_protoc
from .scanner import ArchiveScanner
from .stager import Stager, StageResult

logger = logging.getLogger(__name__)


def should_extract(config: ProtocConfig) -> bool:
    """Decide whether archives are scanned at all this run.

    Scanning only pays off when something will be compiled, or when the
    caller forces it with always_extract.
    """
    return config.always_extract or bool(config.sources)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run.

    Attributes:
        success: False only for a terminal failure of the compiler step
        exit_code: Compiler exit code, None if it was not run or never finished
        stage: What the stager wrote (empty when extraction was skipped)
        include_paths: Include directories handed to the compiler
        sources: Source files handed to the compiler
        output_dir: Resolved output directory (None if not reached)
        compile_result: Compiler invocation details (None if not invoked)
    """

    success: bool
    exit_code: Optional[int] = None
    stage: StageResult = field(default_factory=StageResult)
    include_paths: list[Path] = field(default_factory=list)
    sources: list[Path] = field(default_factory=list)
    output_dir: Optional[Path] = None
    compile_result: Optional[CompileResult] = None

    @property
    def compiled(self) -> bool:
        """Whether the compiler was invoked."""
        return self.compile_result is not None


class ProtocPipeline:
    """Discovers, stages and compiles schema files for one project."""

    def __init__(self, project_dir: Path, config: ProtocConfig, sink: LogSink):
        """Initialize the pipeline.

        Args:
            project_dir: Project root
            config: Effective configuration
            sink: Where everything is reported
        """
        self.config = config
        self.sink = sink
        self.resolver = PathResolver(project_dir, sink, verbose=config.verbose)

    @property
    def staging_dir(self) -> Path:
        return self.resolver.staging_directory()

    def execute(self, artifacts: Iterable[Path]) -> PipelineResult:
        """Run the whole pipeline once.

        Args:
            artifacts: Resolved dependency artifact paths

        Returns:
            PipelineResult; success is False only when compilation failed
        """
        config = self.config

        stage = StageResult()
        if should_extract(config):
            entries = ArchiveScanner(self.sink).scan(artifacts)
            stager = Stager(self.staging_dir, self.sink, clear=config.clear, verbose=config.verbose)
            stage = stager.stage(entries)
        else:
            logger.debug("No sources configured and always_extract off, skipping archive scan")

        result = PipelineResult(success=True, stage=stage)
        if not config.sources:
            if config.verbose:
                self.sink.warn("No proto files were configured to be compiled.")
            return result

        result.include_paths = self.resolver.include_paths(config.include_paths, stage.did_extract)
        result.sources = self.resolver.source_files(config.sources)
        if not result.sources:
            if config.verbose:
                self.sink.warn("None of the configured proto files exist, nothing to compile.")
            return result

        try:
            result.output_dir = self.resolver.output_directory(config.output_directory)
        except OSError as e:
            self.sink.error(f"Could not create output directory {config.output_directory}: {e}")
            result.success = False
            return result

        args = build_protoc_command(result.include_paths, result.sources, result.output_dir, config.language)
        compile_result = run_protoc(config.protoc, args, self.sink, verbose=config.verbose, timeout=config.timeout)
        result.compile_result = compile_result
        result.exit_code = compile_result.exit_code
        result.success = compile_result.success
        return result

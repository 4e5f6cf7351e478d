"""protojar - compile protocol buffers bundled in dependency archives.

Finds ``.proto`` files inside a project's dependency jars, stages them next to
the project's own schema files and runs protoc with the include paths, sources
and output directory assembled.

Public API:
    ProtocPipeline: Entry point; execute(artifacts) runs one build
    ProtocConfig / load_config: Run options
    LogSink / ConsoleSink / RecordingSink: Where the pipeline reports
"""

__version__ = "0.1.0"

from .config import ConfigError, ProtocConfig, load_config
from .output import ConsoleSink, LogSink, RecordingSink
from .pipeline import PipelineResult, ProtocPipeline, should_extract
from .runner import CompileResult, CompilerNotFoundError

__all__ = [
    "CompileResult",
    "CompilerNotFoundError",
    "ConfigError",
    "ConsoleSink",
    "LogSink",
    "PipelineResult",
    "ProtocConfig",
    "ProtocPipeline",
    "RecordingSink",
    "load_config",
    "should_extract",
]

"""Encode pipeline — job manifest in, encoded outputs out.

ProjectEncodeTask walks the job through:

  IDLE -> CONFIGURING -> PER_REFERENCE_PROCESSING -> SUBMITTED
       -> COMPLETED | FAILED

initialize() covers configuration and per-reference processing: each
project descriptor is loaded, its visual track assembled into one job
item, output settings applied, and the item queued on the engine. A
failure inside one reference is logged and the next reference is
processed. start() submits the whole batch; an encode failure fails the
job.
"""

import logging
import traceback
from enum import Enum

from .engine import EncodeEngine, FFmpegEncodeEngine
from .errors import JobItemRejected
from .job import EncodeJobItem, assemble_job_item, configure_output
from .job_manifest import PRESET_PROPERTY, JobMetadata
from .paths import expand_env
from .progress import JobStatus, LoggingStatusSink, ProgressReporter, StatusSink
from .project import load_project, select_visual_track

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    PER_REFERENCE_PROCESSING = "per_reference_processing"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    FAILED = "failed"


def _qualified_name(exc: BaseException) -> str:
    cls = type(exc)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def log_exception_chain(exc: BaseException, level: int = logging.ERROR) -> None:
    """Log type, message and stack of exc and every exception it wraps."""
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        logger.log(level, _qualified_name(exc))
        if str(exc):
            logger.log(level, str(exc))
        if exc.__traceback__ is not None:
            logger.log(level, "".join(traceback.format_tb(exc.__traceback__)).rstrip())
        exc = exc.__cause__ or exc.__context__


class ProjectEncodeTask:
    """Turn every project referenced by a job manifest into encode items.

    Usage:
        with ProjectEncodeTask(metadata) as task:
            task.initialize()
            task.start()
    """

    def __init__(
        self,
        metadata: JobMetadata,
        status: StatusSink | None = None,
        engine: EncodeEngine | None = None,
    ):
        self.metadata = metadata
        self.status = status if status is not None else LoggingStatusSink()
        self.engine = engine
        self.state = PipelineState.IDLE
        self.preset_path: str | None = None
        self.items: list[EncodeJobItem] = []
        self._final_reported = False

    # ── Configuration ─────────────────────────────────────────────

    def configure(self) -> None:
        self.state = PipelineState.CONFIGURING
        logger.debug("Output directory: %s", self.metadata.output_dir)
        if self.engine is None:
            self.engine = FFmpegEncodeEngine(self.metadata.output_dir)

        preset = self.metadata.get_property(PRESET_PROPERTY)
        if preset:
            self.preset_path = expand_env(preset)
            logger.info("Preset file: %s", self.preset_path)

    # ── Per-reference processing ──────────────────────────────────

    def process_reference(self, src: str) -> EncodeJobItem | None:
        """Build the job item for one project descriptor.

        Returns None when the project has nothing to encode (no sequence,
        no visual track, or no shots). Exceptions propagate.
        """
        logger.info("Transforming file: %s", src)
        project = load_project(src)

        logger.info("Looking for visual track")
        track = select_visual_track(project)
        if track is None:
            return None
        if not track.shots:
            logger.info("Visual track has no shots, nothing to encode: %s", src)
            return None

        item = assemble_job_item(track.shots, self.metadata.input_dir)
        return configure_output(item, project.metadata, self.preset_path)

    def _submit_item(self, item: EncodeJobItem) -> None:
        logger.info("Adding media item to job")
        try:
            self.engine.add_item(item)
        except JobItemRejected as exc:
            logger.info("%s: %s", _qualified_name(exc), exc)
            if exc.__cause__ is not None:
                logger.info("%s", exc.__cause__)
            return
        self.items.append(item)

    def process_references(self) -> None:
        self.state = PipelineState.PER_REFERENCE_PROCESSING
        for src in self.metadata.refs:
            try:
                item = self.process_reference(src)
                if item is not None:
                    self._submit_item(item)
            except Exception as exc:
                logger.error("Exception while processing %s", src)
                logger.error(
                    "%s: %s\n%s", _qualified_name(exc), exc,
                    "".join(traceback.format_tb(exc.__traceback__)).rstrip(),
                )

    # ── Lifecycle ─────────────────────────────────────────────────

    @property
    def initialized(self) -> bool:
        return self.state is not PipelineState.IDLE

    def initialize(self) -> None:
        """Configure the job and assemble one item per manifest reference."""
        if self.initialized:
            raise RuntimeError(f"Task already initialized (state: {self.state.value})")
        self.configure()
        self.process_references()

    def _report_final(self, status: JobStatus) -> None:
        if self._final_reported:
            return
        self._final_reported = True
        self.status.update_status(100, status)

    def start(self) -> PipelineState:
        """Submit all queued items to the engine and wait for the encode.

        Returns:
            PipelineState.COMPLETED or PipelineState.FAILED.
        """
        if self.state is not PipelineState.PER_REFERENCE_PROCESSING:
            raise RuntimeError(
                f"Task must be initialized before start (state: {self.state.value})"
            )

        self.state = PipelineState.SUBMITTED
        logger.info("Begin encode.")
        try:
            self.engine.encode(on_progress=ProgressReporter(self.status))
        except Exception as exc:
            logger.error("Caught an exception while encoding media")
            log_exception_chain(exc)
            self.state = PipelineState.FAILED
            self._report_final(JobStatus.FAILED)
        else:
            self.state = PipelineState.COMPLETED
            self._report_final(JobStatus.FINISHED)
        logger.info("End encode.")
        return self.state

    def dispose(self) -> None:
        """Release engine resources. Does not interrupt a running encode."""
        if self.engine is not None:
            self.engine.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False

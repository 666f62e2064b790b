"""Indexing pipeline: discovery, parallel extraction, linking and flattening.

# FILE_CONTEXT: Orchestrates the indexing stages for a source tree
# CONCURRENCY_MODEL:
#   - Parse + hierarchy: CPU-bound, batched across a bounded process pool
#   - Barrier: asyncio.gather over all batches before any linking
#   - Link: project-wide, needs every hierarchy
#   - Embed: IO-bound, rate-limited batching inside EmbeddingService
# ERROR_POLICY: A failing file is reported in IndexResult.errors and never
#   aborts the run
"""

import asyncio
import math
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

from loguru import logger
from rich.progress import Progress, TaskID

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.models.chunk import ChunkForest, ChunkGraphContext, ChunkRecord
from chunkgraph.core.types.common import Language
from chunkgraph.interfaces.dependency_graph import DependencyGraphProvider
from chunkgraph.interfaces.file_classifier import FileClassifier, NullFileClassifier
from chunkgraph.providers.graph.networkx_graph import NetworkXDependencyGraph
from chunkgraph.services.batch_processor import ParsedFileResult, process_file_batch
from chunkgraph.services.embedding_service import EmbeddingService
from chunkgraph.services.graph_linker import ChunkGraphLinker

# Performance tuning constants for parallel parsing
SMALL_FILE_COUNT_THRESHOLD = 100  # Below this: use minimal workers
MEDIUM_FILE_COUNT_THRESHOLD = 1000  # Above this: scale up for monorepos
MAX_WORKERS_SMALL_BATCH = 4
MAX_WORKERS_MEDIUM_BATCH = 8
MAX_WORKERS_LARGE_BATCH = 16

# Fallback CPU count when os.cpu_count() returns None
DEFAULT_CPU_COUNT = 4


def calculate_worker_count(file_count: int, cpu_count: int) -> int:
    """Calculate worker count based on file count and available CPUs.

    Args:
        file_count: Number of files to process
        cpu_count: Number of available CPU cores

    Returns:
        Number of workers, capped by workload size and never below 1
    """
    if file_count < SMALL_FILE_COUNT_THRESHOLD:
        cap = MAX_WORKERS_SMALL_BATCH
    elif file_count < MEDIUM_FILE_COUNT_THRESHOLD:
        cap = MAX_WORKERS_MEDIUM_BATCH
    else:
        cap = MAX_WORKERS_LARGE_BATCH
    return max(1, min(cpu_count, cap, file_count))


def matches_any(relative_path: str, patterns: list[str]) -> bool:
    """Glob match against a posix relative path; ``**/`` also matches the root."""
    rooted = "/" + relative_path
    return any(fnmatch(relative_path, p) or fnmatch(rooted, p) for p in patterns)


@dataclass
class IndexResult:
    """Best-effort outcome of indexing a source tree."""

    records: list[ChunkRecord] = field(default_factory=list)
    forest: ChunkForest = field(default_factory=ChunkForest)
    contexts: dict[str, ChunkGraphContext] = field(default_factory=dict)
    errors: list[dict[str, str]] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)


class IndexingPipeline:
    """Turn a source tree into linked, vectorized chunk records."""

    def __init__(
        self,
        config: IndexingConfig | None = None,
        embedding_service: EmbeddingService | None = None,
        classifier: FileClassifier | None = None,
        dependency_graph: DependencyGraphProvider | None = None,
        progress: Progress | None = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Indexing configuration
            embedding_service: Dense-vector service; records get empty vectors without one
            classifier: Picklable file classifier shipped to parser workers
            dependency_graph: Project dependency graph; built from extractions when None
            progress: Optional Rich Progress instance for hierarchical progress display
        """
        self.config = config or IndexingConfig()
        self._embedding_service = embedding_service
        self._classifier = classifier or NullFileClassifier()
        self._dependency_graph = dependency_graph
        self.progress = progress
        if embedding_service is not None and progress is not None:
            embedding_service.progress = progress

    # Discovery -----------------------------------------------------------

    def discover_files(self, directory: Path) -> list[Path]:
        """Supported files under ``directory`` matching include/exclude and size limits."""
        directory = directory.resolve()
        include = self.config.include_patterns
        exclude = self.config.exclude_patterns
        max_bytes = self.config.max_file_size_kb * 1024
        supported = Language.get_all_extensions()

        discovered: list[Path] = []
        for root, dirs, files in os.walk(directory):
            root_path = Path(root)
            rel_root = root_path.relative_to(directory).as_posix()
            prefix = "" if rel_root == "." else f"{rel_root}/"

            # Prune excluded subtrees early
            dirs[:] = sorted(d for d in dirs if not matches_any(f"{prefix}{d}/", exclude))

            for name in sorted(files):
                relative = f"{prefix}{name}"
                if Path(name).suffix.lower() not in supported:
                    continue
                if not matches_any(relative, include) or matches_any(relative, exclude):
                    continue
                path = root_path / name
                try:
                    size = path.stat().st_size
                except OSError as e:
                    logger.debug(f"[Index] Cannot stat {relative}: {e}")
                    continue
                if size > max_bytes:
                    logger.debug(f"[Index] Skipping {relative}: {size} bytes exceeds limit")
                    continue
                discovered.append(path)

        return sorted(discovered)

    # Orchestration -------------------------------------------------------

    async def index_directory(self, directory: Path) -> IndexResult:
        directory = directory.resolve()
        files = self.discover_files(directory)
        logger.info(f"[Index] Discovered {len(files)} files under {directory}")
        return await self.index_files(files, directory)

    async def index_files(self, files: list[Path], base_directory: Path) -> IndexResult:
        """Run every indexing stage over ``files``."""
        result = IndexResult()
        if not files:
            result.stats = {"files_discovered": 0, "files_indexed": 0, "total_records": 0}
            return result

        parsed = await self._process_files_in_batches(files, base_directory)

        extractions = []
        for item in parsed:
            if item.hierarchy is not None:
                result.forest.add(item.hierarchy)
            if item.extraction is not None and item.status == "success":
                extractions.append(item.extraction)
            if item.status != "success" and item.error:
                result.errors.append(
                    {"file": item.file_path, "status": item.status, "error": item.error}
                )
                logger.warning(f"[Index] Failed to process {item.file_path}: {item.error}")

        graph = self._dependency_graph or NetworkXDependencyGraph.from_extractions(extractions)
        linker = ChunkGraphLinker(self.config, embedding_service=self._embedding_service)
        result.contexts = await asyncio.to_thread(linker.link, result.forest, graph)
        result.records = await linker.flatten(result.forest, result.contexts)

        result.stats = {
            "files_discovered": len(files),
            "files_indexed": len(result.forest.hierarchies),
            "files_failed": sum(1 for item in parsed if item.status == "error"),
            "files_skipped": sum(1 for item in parsed if item.status == "skipped"),
            "total_nodes": len(result.forest),
            "total_records": len(result.records),
        }
        logger.info(
            f"[Index] Indexed {result.stats['files_indexed']}/{len(files)} files into "
            f"{len(result.records)} records"
        )
        return result

    async def _process_files_in_batches(
        self, files: list[Path], base_directory: Path
    ) -> list[ParsedFileResult]:
        """Extract and build hierarchies for ``files`` across a bounded worker pool."""
        cpu_count = os.cpu_count() or DEFAULT_CPU_COUNT
        num_workers = calculate_worker_count(len(files), cpu_count)
        if self.config.max_workers:
            num_workers = min(num_workers, self.config.max_workers)
        config_dict = self.config.model_dump()

        parse_task: TaskID | None = None
        if self.progress:
            parse_task = self.progress.add_task(
                "  └─ Parsing files", total=len(files), speed="", info=""
            )

        if num_workers <= 1:
            logger.debug(f"[Index] Parsing {len(files)} files inline")
            results = await asyncio.to_thread(
                process_file_batch, files, base_directory, config_dict, self._classifier
            )
            if parse_task is not None and self.progress:
                self.progress.advance(parse_task, len(files))
            return results

        logger.debug(f"[Index] Parsing {len(files)} files with {num_workers} workers")
        batch_size = math.ceil(len(files) / num_workers)
        file_batches = [files[i : i + batch_size] for i in range(0, len(files), batch_size)]

        loop = asyncio.get_running_loop()
        with ProcessPoolExecutor(max_workers=num_workers) as executor:

            async def _run(batch: list[Path]) -> list[ParsedFileResult]:
                batch_results = await loop.run_in_executor(
                    executor,
                    process_file_batch,
                    batch,
                    base_directory,
                    config_dict,
                    self._classifier,
                )
                if parse_task is not None and self.progress:
                    self.progress.advance(parse_task, len(batch))
                return batch_results

            batch_results = await asyncio.gather(*(_run(batch) for batch in file_batches))

        return [item for batch in batch_results for item in batch]

"""Batch file processor for parallel extraction across CPU cores.

# FILE_CONTEXT: Worker function for ProcessPoolExecutor to index files in parallel
# ROLE: Performs CPU-bound read→parse→extract→build-hierarchy per batch
# CRITICAL: Must be picklable (top-level function, serializable arguments)
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.models.chunk import ChunkHierarchy
from chunkgraph.core.models.symbol import ExtractionResult
from chunkgraph.core.types.common import Language
from chunkgraph.interfaces.file_classifier import FileClassifier, NullFileClassifier
from chunkgraph.parsers.symbol_extractor import SymbolExtractor
from chunkgraph.services.hierarchy_builder import ChunkHierarchyBuilder


@dataclass
class ParsedFileResult:
    """Result from processing a single file in a batch."""

    file_path: str
    language: Language
    file_size: int
    file_mtime: float
    status: str
    extraction: ExtractionResult | None = None
    hierarchy: ChunkHierarchy | None = None
    error: str | None = None


def process_file_batch(
    file_paths: list[Path],
    base_directory: Path,
    config_dict: dict,
    classifier: FileClassifier | None = None,
) -> list[ParsedFileResult]:
    """Process a batch of files in a worker process.

    This function runs in a separate process via ProcessPoolExecutor, or
    inline on a thread when parallelism is disabled.

    Args:
        file_paths: Absolute paths of the files in this batch
        base_directory: Project root; chunk ids use paths relative to it
        config_dict: Serialized IndexingConfig
        classifier: Picklable file classifier, NullFileClassifier by default

    Returns:
        One ParsedFileResult per input path, in input order
    """
    config = IndexingConfig(**config_dict)
    classifier = classifier or NullFileClassifier()
    extractor = SymbolExtractor()
    builder = ChunkHierarchyBuilder(config)
    results = []

    for file_path in file_paths:
        relative = _relative_posix(file_path, base_directory)
        try:
            file_stat = os.stat(file_path)
            language = Language.from_file_extension(file_path)
            if language == Language.UNKNOWN:
                results.append(
                    ParsedFileResult(
                        file_path=relative,
                        language=language,
                        file_size=file_stat.st_size,
                        file_mtime=file_stat.st_mtime,
                        status="skipped",
                        error=f"Unsupported file type: {file_path.suffix or '<none>'}",
                    )
                )
                continue

            content = file_path.read_text(encoding="utf-8", errors="ignore")

            extraction = extractor.extract_file(relative, content, language)
            if extraction.is_empty and extraction.errors:
                results.append(
                    ParsedFileResult(
                        file_path=relative,
                        language=language,
                        file_size=file_stat.st_size,
                        file_mtime=file_stat.st_mtime,
                        status="error",
                        extraction=extraction,
                        error=extraction.errors[0],
                    )
                )
                continue

            classification = classifier.classify(relative)
            hierarchy = builder.build_hierarchy(
                relative,
                extraction,
                content,
                classification=classification,
                last_modified=datetime.fromtimestamp(file_stat.st_mtime, tz=timezone.utc),
            )

            results.append(
                ParsedFileResult(
                    file_path=relative,
                    language=language,
                    file_size=file_stat.st_size,
                    file_mtime=file_stat.st_mtime,
                    status="success",
                    extraction=extraction,
                    hierarchy=hierarchy,
                    error="; ".join(extraction.errors) or None,
                )
            )

        except Exception as e:
            # Capture errors but continue processing other files in batch
            results.append(
                ParsedFileResult(
                    file_path=relative,
                    language=Language.UNKNOWN,
                    file_size=0,
                    file_mtime=0.0,
                    status="error",
                    error=str(e),
                )
            )

    return results


def _relative_posix(file_path: Path, base_directory: Path) -> str:
    try:
        return file_path.relative_to(base_directory).as_posix()
    except ValueError:
        return file_path.as_posix()

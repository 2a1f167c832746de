import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..exceptions import MetadataUnavailable
from ..models import MediaKind, ResolvedTime
from .extract import ContainerSource, ExifSource, FileModTimeSource, MetadataSource


class TimeResolver:
    """
    Decides when a file was captured.

    Each media kind gets a priority-ordered chain of metadata sources; the
    first one that answers wins. The filesystem modification time closes
    every chain, and its failure (TimeUnavailable) is the only error that
    escapes ``resolve``.
    """

    def __init__(self,
                 chains: Optional[Dict[MediaKind, List[MetadataSource]]] = None,
                 fallback: Optional[MetadataSource] = None):
        self.chains = chains or {
            MediaKind.IMAGE: [ExifSource()],
            MediaKind.VIDEO: [ContainerSource()],
        }
        self.fallback = fallback or FileModTimeSource()

    def resolve(self, path: Path, kind: MediaKind) -> ResolvedTime:
        for source in self.chains.get(kind, []):
            try:
                return ResolvedTime(source.read(path), source.provenance)
            except MetadataUnavailable as e:
                logging.debug(f"[{source.provenance.tag}] unavailable, falling back: {e}")

        return ResolvedTime(self.fallback.read(path), self.fallback.provenance)

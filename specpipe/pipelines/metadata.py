"""
Pass Metadata for Pipeline Introspection.

This module provides the PassMetadata class for annotating postprocessing
passes with what they touch:
- Output areas read and written
- Tree selectors the pass looks at
- Services called (e.g. external resolvers)

Usage:
    from specpipe.pipelines.metadata import PassMetadata

    class MyPass(BasePass):
        '''Pass description.'''

        metadata: ClassVar[PassMetadata] = PassMetadata(
            reads=["idl"],
            writes=["xref"],
            selectors=["a[data-xref]"],
            services=["xref.resolve_batch"],
        )
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class PassMetadata:
    """
    Metadata for pipeline pass introspection.

    Attributes:
        reads: Output areas read by this pass
        writes: Output areas written by this pass
        selectors: Tree selectors the pass queries
        services: Service methods called (e.g., "xref.resolve_batch")
    """

    reads: List[str] = field(default_factory=list)
    writes: List[str] = field(default_factory=list)
    selectors: List[str] = field(default_factory=list)
    services: List[str] = field(default_factory=list)

    @property
    def uses_network(self) -> bool:
        """Check if this pass may call an external service."""
        return bool(self.services)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "reads": self.reads,
            "writes": self.writes,
            "selectors": self.selectors,
            "services": self.services,
            "uses_network": self.uses_network,
        }


def get_pass_metadata(pass_class) -> PassMetadata:
    """
    Extract metadata from a pass class.

    Args:
        pass_class: A pass class or instance

    Returns:
        The pass's PassMetadata, or an empty one if none is defined
    """
    return getattr(pass_class, "metadata", None) or PassMetadata()


def describe_passes(pass_classes: List) -> List[dict]:
    """
    Describe passes in execution order.

    Args:
        pass_classes: Pass classes or instances

    Returns:
        One dict per pass with its name, area and metadata
    """
    described = []
    for pass_class in pass_classes:
        cls = pass_class if isinstance(pass_class, type) else type(pass_class)
        area = getattr(pass_class, "area", None)
        described.append({
            "name": cls.__name__,
            "area": getattr(area, "value", area),
            **get_pass_metadata(pass_class).to_dict(),
        })
    return described

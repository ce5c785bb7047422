"""Dataclasses for platform generation."""
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional


@dataclass
class GeneratedFile:
    """Represents a generated file."""
    path: str  # Relative path from the platform output directory
    content: str


@dataclass
class PlatformOutput:
    """What a single platform generator produced."""
    files: List[str]  # Paths actually written, in response order
    summary: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PlatformResult:
    """Outcome of one platform in a fan-out."""
    platform: str
    success: bool
    files: List[str] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "files": list(self.files), "structure": dict(self.summary)}
        return {"success": False, "error": self.error}

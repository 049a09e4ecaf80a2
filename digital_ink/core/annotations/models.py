"""
Data classes for freehand annotations and drawing tool settings.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from digital_ink.config import Config


class Tool(Enum):
    PEN = "pen"
    ERASER = "eraser"
    SELECT = "select"


@dataclass(frozen=True)
class ToolConfig:
    """Active tool plus the brush the user picked for the pen."""
    tool: Tool = Tool.PEN
    color: str = Config.DEFAULT_BRUSH_COLOR  # "#rrggbb"
    width: float = Config.DEFAULT_BRUSH_WIDTH

    @property
    def is_drawing(self) -> bool:
        """Pen and eraser draw; select only picks existing strokes."""
        return self.tool != Tool.SELECT

    @property
    def brush_color(self) -> str:
        """Color actually painted. The eraser paints over in the page tone."""
        return Config.ERASER_COLOR if self.tool == Tool.ERASER else self.color

    @property
    def brush_width(self) -> float:
        return Config.ERASER_WIDTH if self.tool == Tool.ERASER else self.width

    def updated(self, tool: Optional[Tool] = None, color: Optional[str] = None,
                width: Optional[float] = None) -> "ToolConfig":
        """Return a copy with the given fields replaced."""
        changes = {}
        if tool is not None:
            changes['tool'] = tool
        if color is not None:
            changes['color'] = color
        if width is not None:
            changes['width'] = float(width)
        return replace(self, **changes)


@dataclass
class Stroke:
    """A single freehand path drawn on a page surface."""
    tool: Tool
    color: str
    width: float
    # Surface pixel coordinates
    points: List[Tuple[float, float]] = field(default_factory=list)

    def to_dict(self):
        """Convert stroke to dictionary for JSON serialization."""
        return {
            'type': 'path',
            'tool': self.tool.value,
            'stroke': self.color,
            'strokeWidth': self.width,
            'points': [[x, y] for x, y in self.points],
        }

    @staticmethod
    def from_dict(data):
        """
        Create a stroke from its dictionary form.

        Raises:
            ValueError, KeyError, TypeError: if the dictionary is malformed
        """
        if data.get('type', 'path') != 'path':
            raise ValueError(f"Unsupported object type: {data.get('type')!r}")

        points = []
        for point in data['points']:
            if len(point) != 2:
                raise ValueError(f"Invalid point: {point!r}")
            points.append((float(point[0]), float(point[1])))

        return Stroke(
            tool=Tool(data.get('tool', Tool.PEN.value)),
            color=str(data['stroke']),
            width=float(data['strokeWidth']),
            points=points,
        )

"""
Freehand drawing surface bound to one rendered page.
"""
import json
import logging
from typing import List, Optional, Sequence, Tuple

from PyQt5.QtCore import QObject, QPointF, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QImage, QPainter, QPainterPath, QPen

from digital_ink.core.errors import RestoreFailure
from .models import Stroke, Tool, ToolConfig
from .undo_redo import UndoRedoStack

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def _parse_snapshot(snapshot: str) -> List[Stroke]:
    """
    Parse a serialized surface back into strokes.

    Raises:
        RestoreFailure: if the snapshot is not a valid surface document
    """
    try:
        data = json.loads(snapshot)
        objects = data.get('objects') if isinstance(data, dict) else None
        if not isinstance(objects, list):
            raise ValueError("snapshot has no object list")
        return [Stroke.from_dict(obj) for obj in objects]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise RestoreFailure(f"Corrupt annotation snapshot: {e}") from e


def snapshot_object_count(snapshot: str) -> int:
    """
    Count the drawn objects stored in a snapshot.

    Raises:
        RestoreFailure: if the snapshot cannot be parsed
    """
    return len(_parse_snapshot(snapshot))


def _point_near_segment(px: float, py: float, x1: float, y1: float,
                        x2: float, y2: float, tolerance: float) -> bool:
    """Check if a point lies within tolerance of a line segment."""
    line_length_sq = (x2 - x1) ** 2 + (y2 - y1) ** 2

    if line_length_sq == 0:
        dist = ((px - x1) ** 2 + (py - y1) ** 2) ** 0.5
        return dist <= tolerance

    # Projection of the point onto the segment, clamped to its ends
    t = max(0, min(1, ((px - x1) * (x2 - x1) + (py - y1) * (y2 - y1)) / line_length_sq))
    nearest_x = x1 + t * (x2 - x1)
    nearest_y = y1 + t * (y2 - y1)

    dist = ((px - nearest_x) ** 2 + (py - nearest_y) ** 2) ** 0.5
    return dist <= tolerance


class AnnotationSurface(QObject):
    """
    Drawing layer for a single page.

    Holds the strokes drawn on the page in surface pixel coordinates (the
    same pixel grid as the rendered page), serializes them to a portable
    JSON snapshot and flattens them to a transparent raster.
    """

    objects_changed = pyqtSignal()

    def __init__(self, width: int, height: int,
                 tool_config: Optional[ToolConfig] = None, parent=None):
        super().__init__(parent)
        self.width = int(width)
        self.height = int(height)
        self.tool_config = tool_config or ToolConfig()

        self.strokes: List[Stroke] = []
        self.selected_stroke: Optional[Stroke] = None
        self.history = UndoRedoStack()

        # Stroke being drawn by the pointer, not yet committed
        self._active_stroke: Optional[Stroke] = None

    # Tool handling

    def configure(self, tool: Tool, color: str, width: float) -> None:
        """
        Set the drawing mode and brush.

        Args:
            tool: PEN or ERASER enable free drawing, SELECT disables it
            color: Pen color as "#rrggbb"
            width: Pen width in pixels
        """
        self.tool_config = ToolConfig(tool=tool, color=color, width=float(width))
        if not self.is_drawing_mode:
            self._active_stroke = None
        else:
            self.selected_stroke = None

    @property
    def is_drawing_mode(self) -> bool:
        return self.tool_config.is_drawing

    # Pointer input

    def begin_stroke(self, x: float, y: float) -> bool:
        """
        Start a stroke at a pointer position.

        Returns:
            True if a stroke was started (False in select mode)
        """
        if not self.is_drawing_mode:
            return False

        self._active_stroke = Stroke(
            tool=self.tool_config.tool,
            color=self.tool_config.brush_color,
            width=self.tool_config.brush_width,
            points=[(float(x), float(y))],
        )
        return True

    def extend_stroke(self, x: float, y: float) -> None:
        """Add a pointer position to the stroke in progress."""
        if self._active_stroke is not None:
            self._active_stroke.points.append((float(x), float(y)))

    def end_stroke(self, x: Optional[float] = None,
                   y: Optional[float] = None) -> Optional[Stroke]:
        """
        Finish the stroke in progress and commit it as a drawn object.

        Returns:
            The committed stroke, or None if there was nothing to commit
        """
        stroke = self._active_stroke
        self._active_stroke = None
        if stroke is None:
            return None

        if x is not None and y is not None:
            stroke.points.append((float(x), float(y)))

        # A click without movement is not a stroke
        if len(stroke.points) < 2:
            return None

        self._append(stroke)
        return stroke

    @property
    def active_stroke(self) -> Optional[Stroke]:
        return self._active_stroke

    def add_stroke(self, points: Sequence[Tuple[float, float]]) -> Stroke:
        """
        Commit a complete stroke drawn with the current tool.

        Args:
            points: Surface coordinates of the path, at least two

        Returns:
            The committed stroke
        """
        if len(points) < 2:
            raise ValueError("A stroke needs at least two points")

        stroke = Stroke(
            tool=self.tool_config.tool if self.is_drawing_mode else Tool.PEN,
            color=self.tool_config.brush_color,
            width=self.tool_config.brush_width,
            points=[(float(x), float(y)) for x, y in points],
        )
        self._append(stroke)
        return stroke

    def _append(self, stroke: Stroke) -> None:
        self.strokes.append(stroke)
        self.history.clear()
        self.objects_changed.emit()

    # Editing

    def remove_last_object(self) -> Optional[Stroke]:
        """
        Undo the most recently added stroke.

        Returns:
            The removed stroke, or None if the surface is empty
        """
        if not self.strokes:
            return None

        stroke = self.strokes.pop()
        self.history.push_undone(stroke)
        if self.selected_stroke is stroke:
            self.selected_stroke = None
        self.objects_changed.emit()
        return stroke

    def redo(self) -> bool:
        """Re-add the most recently undone stroke."""
        stroke = self.history.redo()
        if stroke is None:
            return False
        self.strokes.append(stroke)
        self.objects_changed.emit()
        return True

    def clear(self) -> None:
        """Remove every drawn object."""
        self.strokes.clear()
        self.history.clear()
        self.selected_stroke = None
        self._active_stroke = None
        self.objects_changed.emit()

    def select_object_at(self, x: float, y: float) -> Optional[Stroke]:
        """
        Select the topmost stroke passing near a point.

        Args:
            x: X coordinate in surface pixels
            y: Y coordinate in surface pixels

        Returns:
            The selected stroke, or None if nothing is close enough
        """
        self.selected_stroke = None

        # Topmost first
        for stroke in reversed(self.strokes):
            tolerance = max(stroke.width / 2.0 + 2.0, 5.0)
            points = stroke.points
            for i in range(len(points) - 1):
                if _point_near_segment(x, y, points[i][0], points[i][1],
                                       points[i + 1][0], points[i + 1][1], tolerance):
                    self.selected_stroke = stroke
                    return stroke
        return None

    def remove_selected(self) -> bool:
        """Delete the selected stroke, if any."""
        stroke = self.selected_stroke
        if stroke is None or stroke not in self.strokes:
            return False

        self.strokes.remove(stroke)
        self.selected_stroke = None
        self.history.clear()
        self.objects_changed.emit()
        return True

    def object_count(self) -> int:
        return len(self.strokes)

    # Snapshots

    def serialize(self) -> str:
        """
        Produce a JSON snapshot of all drawn objects.

        Returns:
            JSON text from which restore() rebuilds the same strokes
        """
        data = {
            'version': SNAPSHOT_VERSION,
            'width': self.width,
            'height': self.height,
            'objects': [stroke.to_dict() for stroke in self.strokes],
        }
        return json.dumps(data)

    def restore(self, snapshot: str) -> None:
        """
        Replace the surface content with the strokes of a snapshot.

        The surface is left empty when the snapshot cannot be parsed.

        Raises:
            RestoreFailure: if the snapshot is malformed
        """
        self.history.clear()
        self.selected_stroke = None
        self._active_stroke = None

        try:
            strokes = _parse_snapshot(snapshot)
        except RestoreFailure:
            self.strokes = []
            self.objects_changed.emit()
            raise

        self.strokes = strokes
        self.objects_changed.emit()

    # Rendering

    def paint(self, painter: QPainter, include_preview: bool = False) -> None:
        """
        Paint the strokes with an already active painter.

        Args:
            painter: Painter targeting a device with the surface's pixel grid
            include_preview: Also paint the stroke currently being drawn
        """
        painter.setRenderHint(QPainter.Antialiasing)
        for stroke in self.strokes:
            self._paint_stroke(painter, stroke)

        if include_preview and self._active_stroke is not None:
            self._paint_stroke(painter, self._active_stroke)

    def rasterize(self) -> QImage:
        """
        Flatten all strokes onto a transparent image of the surface size.

        Returns:
            ARGB image, width x height pixels
        """
        image = QImage(self.width, self.height, QImage.Format_ARGB32_Premultiplied)
        image.fill(Qt.transparent)

        painter = QPainter(image)
        try:
            self.paint(painter)
        finally:
            painter.end()
        return image

    @staticmethod
    def _paint_stroke(painter: QPainter, stroke: Stroke) -> None:
        if not stroke.points:
            return

        pen = QPen(QColor(stroke.color))
        pen.setWidthF(stroke.width)
        pen.setCapStyle(Qt.RoundCap)
        pen.setJoinStyle(Qt.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)

        first = stroke.points[0]
        if len(stroke.points) == 1:
            painter.drawPoint(QPointF(first[0], first[1]))
            return

        path = QPainterPath(QPointF(first[0], first[1]))
        for x, y in stroke.points[1:]:
            path.lineTo(QPointF(x, y))
        painter.drawPath(path)

    def __repr__(self) -> str:
        return f"AnnotationSurface({self.width}x{self.height}, objects={len(self.strokes)})"

"""
Page widget that shows the active page and feeds pointer input into its surface.
"""
from typing import Optional

from PyQt5.QtCore import QRectF, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QMouseEvent, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import QLabel

from digital_ink.core.annotations import AnnotationSurface


class PageCanvas(QLabel):
    """
    Displays a rendered page at surface resolution with its ink on top.

    Features:
    - Freehand drawing with the pen and eraser tools
    - Stroke selection and deletion with the select tool
    - Live preview of the stroke being drawn
    """

    # Signals
    stroke_finished = pyqtSignal()
    selection_changed = pyqtSignal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.surface: Optional[AnnotationSurface] = None
        self._is_drawing = False

        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setFocusPolicy(Qt.StrongFocus)

    def set_page(self, image, surface: AnnotationSurface):
        """
        Show a new page.

        Args:
            image: Rendered page QImage
            surface: Live surface bound to the page
        """
        if self.surface is not None:
            self.surface.objects_changed.disconnect(self.update)

        self.surface = surface
        self._is_drawing = False
        self.surface.objects_changed.connect(self.update)

        pixmap = QPixmap.fromImage(image)
        self.setPixmap(pixmap)
        self.setFixedSize(pixmap.size())
        self._update_cursor()
        self.update()

    def clear_page(self):
        """Detach from the current page, e.g. after a session reset."""
        if self.surface is not None:
            self.surface.objects_changed.disconnect(self.update)
        self.surface = None
        self._is_drawing = False
        self.clear()

    def refresh_tool(self):
        self._update_cursor()
        self.update()

    def _update_cursor(self):
        drawing = self.surface is not None and self.surface.is_drawing_mode
        self.setCursor(Qt.CrossCursor if drawing else Qt.ArrowCursor)

    # Mouse event handlers

    def mousePressEvent(self, event: QMouseEvent):
        self.setFocus()

        if event.button() != Qt.LeftButton or self.surface is None:
            return super().mousePressEvent(event)

        pos = event.pos()
        if self.surface.is_drawing_mode:
            self._is_drawing = self.surface.begin_stroke(pos.x(), pos.y())
        else:
            selected = self.surface.select_object_at(pos.x(), pos.y())
            self.selection_changed.emit(selected is not None)
        self.update()

    def mouseMoveEvent(self, event: QMouseEvent):
        if self._is_drawing and self.surface is not None:
            pos = event.pos()
            self.surface.extend_stroke(pos.x(), pos.y())
            self.update()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() != Qt.LeftButton or not self._is_drawing or self.surface is None:
            return super().mouseReleaseEvent(event)

        pos = event.pos()
        self._is_drawing = False
        if self.surface.end_stroke(pos.x(), pos.y()) is not None:
            self.stroke_finished.emit()
        self.update()

    def keyPressEvent(self, event):
        if event.key() in (Qt.Key_Delete, Qt.Key_Backspace) and self.surface is not None:
            if self.surface.remove_selected():
                self.selection_changed.emit(False)
            return
        super().keyPressEvent(event)

    # Paint methods

    def paintEvent(self, event):
        super().paintEvent(event)
        if self.surface is None:
            return

        painter = QPainter(self)
        try:
            self.surface.paint(painter, include_preview=self._is_drawing)
            self._paint_selection(painter)
        finally:
            painter.end()

    def _paint_selection(self, painter: QPainter):
        stroke = self.surface.selected_stroke
        if stroke is None or not stroke.points:
            return

        xs = [p[0] for p in stroke.points]
        ys = [p[1] for p in stroke.points]
        margin = stroke.width / 2.0 + 4
        rect = QRectF(min(xs) - margin, min(ys) - margin,
                      max(xs) - min(xs) + 2 * margin, max(ys) - min(ys) + 2 * margin)

        pen = QPen(QColor(74, 158, 255), 1.5, Qt.DashLine)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawRect(rect)

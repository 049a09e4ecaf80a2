from PyQt5.QtCore import pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import (
    QButtonGroup, QColorDialog, QFrame, QHBoxLayout, QLabel,
    QSpinBox, QToolButton
)

from digital_ink.config import Config
from digital_ink.core.annotations import Tool


class DrawingToolbar(QFrame):
    """Pen, eraser and select tools plus the brush settings and page actions."""

    tool_changed = pyqtSignal(object, str, float)  # Tool, "#rrggbb", width
    clear_requested = pyqtSignal()
    undo_requested = pyqtSignal()
    redo_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("DrawingToolbar")
        self.current_tool = Tool.PEN
        self.current_color = Config.DEFAULT_BRUSH_COLOR
        self.current_stroke_width = Config.DEFAULT_BRUSH_WIDTH

        self.setup_ui()

    def setup_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 4, 8, 4)
        layout.setSpacing(6)

        # Tools
        self.tool_group = QButtonGroup(self)
        self.tool_group.setExclusive(True)
        self.tool_buttons = {}
        for tool, label, tip in (
            (Tool.PEN, "Pen", "Draw freehand"),
            (Tool.ERASER, "Eraser", "Paint over ink in white"),
            (Tool.SELECT, "Select", "Select a stroke (Delete removes it)"),
        ):
            button = QToolButton(self)
            button.setText(label)
            button.setToolTip(tip)
            button.setCheckable(True)
            self.tool_group.addButton(button)
            self.tool_buttons[tool] = button
            button.clicked.connect(lambda checked, t=tool: self._on_tool_clicked(t))
            layout.addWidget(button)
        self.tool_buttons[Tool.PEN].setChecked(True)

        layout.addSpacing(12)

        # Stroke width
        layout.addWidget(QLabel("Width:", self))
        self.stroke_spinbox = QSpinBox(self)
        self.stroke_spinbox.setMinimum(Config.MIN_BRUSH_WIDTH)
        self.stroke_spinbox.setMaximum(Config.MAX_BRUSH_WIDTH)
        self.stroke_spinbox.setValue(int(self.current_stroke_width))
        self.stroke_spinbox.valueChanged.connect(self._on_stroke_changed)
        layout.addWidget(self.stroke_spinbox)

        # Color picker
        layout.addWidget(QLabel("Color:", self))
        self.color_button = QToolButton(self)
        self.color_button.setToolTip("Choose color")
        self.color_button.setFixedSize(28, 28)
        self.color_button.clicked.connect(self._choose_color)
        self._update_color_button()
        layout.addWidget(self.color_button)

        layout.addSpacing(12)

        # Page actions
        for label, signal in (
            ("Undo", self.undo_requested),
            ("Redo", self.redo_requested),
            ("Clear Page", self.clear_requested),
        ):
            button = QToolButton(self)
            button.setText(label)
            button.clicked.connect(signal.emit)
            layout.addWidget(button)

        layout.addStretch()

    def _on_tool_clicked(self, tool: Tool):
        self.set_tool(tool)

    def set_tool(self, tool: Tool):
        """Select a tool and announce the new settings."""
        self.current_tool = tool
        self.tool_buttons[tool].setChecked(True)
        self._emit_tool_changed()

    def _on_stroke_changed(self, value):
        """Update stroke width."""
        self.current_stroke_width = float(value)
        self._emit_tool_changed()

    def _choose_color(self):
        """Open color picker dialog."""
        color = QColorDialog.getColor(QColor(self.current_color), self, "Choose Pen Color")

        if color.isValid():
            self.set_color(color.name())

    def set_color(self, color: str):
        self.current_color = color
        self._update_color_button()
        self._emit_tool_changed()

    def _update_color_button(self):
        """Update the color button to show the current color."""
        self.color_button.setStyleSheet(
            f"QToolButton {{ background-color: {self.current_color}; "
            f"border: 2px solid #555555; border-radius: 4px; }}"
        )

    def _emit_tool_changed(self):
        """Emit signal with current tool settings."""
        self.tool_changed.emit(self.current_tool, self.current_color, self.current_stroke_width)

    def get_current_settings(self):
        """Return current tool settings."""
        return self.current_tool, self.current_color, self.current_stroke_width

"""
Window and Widget Tests
"""
import pytest
from PyQt5.QtCore import QEvent, QPointF, Qt
from PyQt5.QtGui import QKeyEvent, QMouseEvent

from digital_ink.core.annotations import Tool
from digital_ink.core.session import DocumentSession
from digital_ink.ui.toolbars import DrawingToolbar
from digital_ink.ui.widgets import PageCanvas
from digital_ink.ui.windows import AnnotatorWindow
from digital_ink.ui.windows.main_window import sources_from_paths


def mouse(kind, x, y, button=Qt.LeftButton):
    buttons = Qt.NoButton if kind == QEvent.MouseButtonRelease else button
    return QMouseEvent(kind, QPointF(x, y), button, buttons, Qt.NoModifier)


def drag(canvas, points):
    (x0, y0), rest = points[0], points[1:]
    canvas.mousePressEvent(mouse(QEvent.MouseButtonPress, x0, y0))
    for x, y in rest[:-1]:
        canvas.mouseMoveEvent(mouse(QEvent.MouseMove, x, y, Qt.NoButton))
    x, y = rest[-1]
    canvas.mouseReleaseEvent(mouse(QEvent.MouseButtonRelease, x, y))


@pytest.fixture
def window(qapp, intake_sources):
    session = DocumentSession()
    w = AnnotatorWindow(intake_sources, session=session)
    yield w
    session.reset()
    w.deleteLater()


class TestAnnotatorWindow:
    """Test navigation through the main window"""

    def test_initial_page_label(self, window):
        assert window.page_label.text() == "Page 1 of 3 (Overall: 1 of 5)"
        assert not window.prev_button.isEnabled()
        assert window.next_button.isEnabled()
        assert window.analyze_button.isEnabled()

    def test_tabs_follow_documents(self, window):
        assert window.document_tabs.count() == 2
        assert [window.document_tabs.tabText(i) for i in range(2)] == ['Orofacial Exam', 'Consents']
        assert window.document_tabs.currentIndex() == 0

    def test_next_button(self, window):
        window.next_button.click()
        assert window.page_label.text() == "Page 2 of 3 (Overall: 2 of 5)"
        assert window.canvas.surface is window.session.active_surface()

    def test_tab_switch(self, window):
        window.document_tabs.setCurrentIndex(1)
        assert window.session.active_document.id == 'consents'
        assert window.page_label.text() == "Page 1 of 2 (Overall: 4 of 5)"

    def test_canvas_drawing_survives_navigation(self, window):
        drag(window.canvas, [(20, 60), (60, 62), (120, 64)])
        assert window.session.has_annotations('orofacial', 1)

        window.next_button.click()
        window.prev_button.click()

        assert window.canvas.surface.object_count() == 1

    def test_toolbar_changes_session_tool(self, window):
        window.drawing_toolbar.set_tool(Tool.SELECT)
        assert window.session.tool_config.tool == Tool.SELECT
        assert not window.canvas.surface.is_drawing_mode

    def test_start_over(self, window):
        window.start_over()
        assert window.page_label.text() == "No documents loaded"
        assert window.document_tabs.count() == 0
        assert window.canvas.surface is None
        assert not window.analyze_button.isEnabled()

    def test_sources_from_paths(self):
        sources = sources_from_paths(['/forms/Orofacial Exam.pdf', '/forms/consents.pdf'])
        assert [s.name for s in sources] == ['Orofacial Exam', 'consents']
        assert len({s.id for s in sources}) == 2


class TestPageCanvas:
    """Test pointer routing into the surface"""

    @pytest.fixture
    def canvas(self, loaded_session):
        rendered = loaded_session.render_active_page()
        canvas = PageCanvas()
        canvas.set_page(rendered.image, rendered.surface)
        return canvas

    def test_drag_commits_stroke(self, canvas):
        finished = []
        canvas.stroke_finished.connect(lambda: finished.append(1))

        drag(canvas, [(10, 10), (30, 30), (50, 50)])

        assert canvas.surface.object_count() == 1
        assert canvas.surface.strokes[0].points == [(10.0, 10.0), (30.0, 30.0), (50.0, 50.0)]
        assert finished == [1]

    def test_click_is_not_a_stroke(self, canvas):
        canvas.mousePressEvent(mouse(QEvent.MouseButtonPress, 10, 10))
        canvas.mouseReleaseEvent(mouse(QEvent.MouseButtonRelease, 10, 10))
        assert canvas.surface.object_count() == 0

    def test_select_and_delete(self, canvas, loaded_session):
        drag(canvas, [(10, 100), (200, 100)])
        loaded_session.set_tool(Tool.SELECT)
        selections = []
        canvas.selection_changed.connect(selections.append)

        canvas.mousePressEvent(mouse(QEvent.MouseButtonPress, 100, 101))
        canvas.keyPressEvent(QKeyEvent(QEvent.KeyPress, Qt.Key_Delete, Qt.NoModifier))

        assert selections == [True, False]
        assert canvas.surface.object_count() == 0

    def test_canvas_matches_page_size(self, canvas):
        assert (canvas.width(), canvas.height()) == (300, 450)


class TestDrawingToolbar:
    """Test the tool controls"""

    def test_tool_buttons_are_exclusive(self, qapp):
        toolbar = DrawingToolbar()
        toolbar.set_tool(Tool.ERASER)
        assert toolbar.tool_buttons[Tool.ERASER].isChecked()
        assert not toolbar.tool_buttons[Tool.PEN].isChecked()

    def test_width_change_emits(self, qapp):
        toolbar = DrawingToolbar()
        changes = []
        toolbar.tool_changed.connect(lambda tool, color, width: changes.append((tool, color, width)))

        toolbar.stroke_spinbox.setValue(5)
        toolbar.set_color('#00ff00')

        assert changes == [(Tool.PEN, '#000000', 5.0), (Tool.PEN, '#00ff00', 5.0)]
        assert toolbar.get_current_settings() == (Tool.PEN, '#00ff00', 5.0)

    def test_width_is_bounded(self, qapp):
        toolbar = DrawingToolbar()
        toolbar.stroke_spinbox.setValue(50)
        assert toolbar.stroke_spinbox.value() == 10

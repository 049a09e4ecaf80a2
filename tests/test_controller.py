"""
Annotation Controller Tests
"""
import pytest

from digital_ink.controllers import annotation_controller
from digital_ink.controllers.annotation_controller import NOTHING_TO_ANALYZE, AnnotationController
from digital_ink.core.errors import RemoteFailure, RenderFailure
from digital_ink.core.export import AnalysisWorker
from digital_ink.services import AnalyzeResponse, ExtractionResult, JobStatus


class FakeClient:
    """Extraction client answering from memory"""

    def __init__(self, payload, final_status='completed', save_error=None, on_results=None):
        self.payload = payload
        self.final_status = final_status
        self.save_error = save_error
        self.on_results = on_results
        self.analyzed = []
        self.saved = []

    def analyze_images(self, pages, name=None, schema_path=None):
        self.analyzed.append(([p.filename for p in pages], name, schema_path))
        return AnalyzeResponse('job-1', 'pending')

    def save_annotated_pdfs(self, documents, job_id=None):
        if self.save_error is not None:
            raise self.save_error
        self.saved.append(([d.filename for d in documents], job_id))
        return {'success': True}

    def poll_job_status(self, job_id, on_progress=None):
        for state in ('processing', self.final_status):
            status = JobStatus(job_id, state, message='Model error' if state == 'failed' else None)
            if on_progress is not None:
                on_progress(status)
        return status

    def get_results(self, job_id):
        if self.on_results is not None:
            self.on_results()
        return ExtractionResult.from_dict(self.payload)


class FakeMessageBox:
    calls = []

    @classmethod
    def information(cls, parent, title, text):
        cls.calls.append(('information', title, text))

    @classmethod
    def warning(cls, parent, title, text):
        cls.calls.append(('warning', title, text))

    @classmethod
    def critical(cls, parent, title, text):
        cls.calls.append(('critical', title, text))


@pytest.fixture(autouse=True)
def synchronous_worker(monkeypatch):
    """Run analysis workers inline and capture message boxes"""
    monkeypatch.setattr(AnalysisWorker, 'start', lambda self: self.run())
    FakeMessageBox.calls = []
    monkeypatch.setattr(annotation_controller, 'QMessageBox', FakeMessageBox)


def make_controller(session, client):
    controller = AnnotationController(session, client)
    events = {'finished': [], 'results': [], 'progress': [], 'jobs': []}
    controller.analysis_finished.connect(lambda ok, msg: events['finished'].append((ok, msg)))
    controller.results_ready.connect(events['results'].append)
    controller.analysis_progress.connect(events['progress'].append)
    controller.job_progress.connect(lambda s: events['jobs'].append(s.status))
    return controller, events


class TestSaveAndAnalyze:
    """Test the export and analysis round trip"""

    def test_nothing_to_analyze(self, loaded_session, extraction_payload):
        client = FakeClient(extraction_payload)
        controller, events = make_controller(loaded_session, client)

        assert not controller.save_and_analyze()

        assert FakeMessageBox.calls == [('information', 'Nothing to Analyze', NOTHING_TO_ANALYZE)]
        assert client.analyzed == []
        assert events['finished'] == []

    def test_successful_analysis(self, loaded_session, draw, extraction_payload):
        draw(loaded_session)
        loaded_session.set_active_document('consents')
        loaded_session.go_to_page(2)
        draw(loaded_session)
        client = FakeClient(extraction_payload)
        controller, events = make_controller(loaded_session, client)

        assert controller.save_and_analyze(name='Intake', schema_path='schemas/a.json')

        assert client.analyzed == [
            (['Orofacial_Exam_page_1.png', 'Consents_page_2.png'], 'Intake', 'schemas/a.json')
        ]
        assert client.saved == [
            (['Orofacial_Exam_annotated.pdf', 'Consents_annotated.pdf'], 'job-1')
        ]
        assert events['jobs'] == ['processing', 'completed']
        assert events['finished'] == [(True, 'Analysis complete!')]
        assert events['results'][0].form_name == 'Orofacial Exam'
        assert controller.results is events['results'][0]
        assert not controller.is_busy
        assert FakeMessageBox.calls == []

    def test_finished_worker_is_released(self, loaded_session, draw, extraction_payload,
                                         monkeypatch):
        """The finished worker thread is joined and scheduled for deletion"""
        calls = []
        monkeypatch.setattr(AnalysisWorker, 'wait', lambda self, *args: calls.append('wait') or True)
        monkeypatch.setattr(AnalysisWorker, 'deleteLater', lambda self: calls.append('deleteLater'))
        draw(loaded_session)
        controller, _ = make_controller(loaded_session, FakeClient(extraction_payload))

        controller.save_and_analyze()

        assert calls == ['wait', 'deleteLater']
        assert controller.worker is None

    def test_storage_failure_is_not_fatal(self, loaded_session, draw, extraction_payload):
        draw(loaded_session)
        client = FakeClient(extraction_payload, save_error=RemoteFailure('disk full', 500))
        controller, events = make_controller(loaded_session, client)

        controller.save_and_analyze()

        assert events['finished'] == [(True, 'Analysis complete!')]
        assert controller.results is not None

    def test_failed_job(self, loaded_session, draw, extraction_payload):
        draw(loaded_session)
        controller, events = make_controller(
            loaded_session, FakeClient(extraction_payload, final_status='failed'))

        controller.save_and_analyze()

        assert events['finished'] == [(False, 'Model error')]
        assert events['results'] == []
        assert FakeMessageBox.calls == [('warning', 'Analysis Failed', 'Model error')]

    def test_results_after_reset_are_discarded(self, loaded_session, draw, extraction_payload):
        """Work finishing after Start Over must not surface in the new session"""
        draw(loaded_session)
        client = FakeClient(extraction_payload, on_results=loaded_session.reset)
        controller, events = make_controller(loaded_session, client)

        controller.save_and_analyze()

        assert events['results'] == []
        assert events['finished'] == []
        assert controller.results is None
        assert controller.last_export is None
        assert FakeMessageBox.calls == []

    def test_all_pages_failing_export(self, loaded_session, draw, extraction_payload, monkeypatch):
        draw(loaded_session)
        reader = loaded_session.active_document.reader

        def broken(page_number, scale):
            raise RenderFailure("cannot rasterize", page_number)

        monkeypatch.setattr(reader, 'render_page', broken)
        client = FakeClient(extraction_payload)
        controller, _ = make_controller(loaded_session, client)

        assert not controller.save_and_analyze()
        assert client.analyzed == []
        assert FakeMessageBox.calls[0][:2] == ('warning', 'Export Failed')


class TestEditing:
    """Test editing commands"""

    def test_undo_redo_clear(self, loaded_session, draw, extraction_payload):
        controller, _ = make_controller(loaded_session, FakeClient(extraction_payload))
        changes = []
        controller.annotations_changed.connect(lambda: changes.append(1))

        assert not controller.undo()
        draw(loaded_session)
        assert controller.undo()
        assert controller.redo()
        controller.clear_page()

        assert not loaded_session.has_annotations('orofacial', 1)
        assert len(changes) == 3

    def test_delete_selected(self, loaded_session, draw, extraction_payload):
        controller, _ = make_controller(loaded_session, FakeClient(extraction_payload))
        draw(loaded_session)
        surface = loaded_session.active_surface()
        surface.select_object_at(60, 60)

        assert controller.delete_selected()
        assert surface.object_count() == 0


class TestReport:
    """Test saving the findings report"""

    def test_save_report(self, loaded_session, draw, extraction_payload, tmp_path):
        draw(loaded_session)
        controller, _ = make_controller(loaded_session, FakeClient(extraction_payload))
        controller.save_and_analyze()

        path = tmp_path / 'report.docx'
        assert controller.save_report(str(path))
        assert path.read_bytes().startswith(b'PK')

    def test_save_report_without_results(self, loaded_session, extraction_payload, tmp_path):
        controller, _ = make_controller(loaded_session, FakeClient(extraction_payload))
        assert not controller.save_report(str(tmp_path / 'report.docx'))
        assert FakeMessageBox.calls[0][:2] == ('information', 'No Results')

"""
Extraction Client Tests
"""
import json

import pytest
import requests

from digital_ink.core.errors import RemoteFailure, TimeoutFailure, ValidationFailure
from digital_ink.core.export import AnalysisWorker, AnnotatedDocument, AnnotatedPage, ExportResult
from digital_ink.services import ExtractionClient, JobStatus


def make_response(status_code=200, payload=None, body=None):
    response = requests.Response()
    response.status_code = status_code
    if body is None:
        body = json.dumps(payload if payload is not None else {}).encode()
    response._content = body
    response.headers['Content-Type'] = 'application/json'
    return response


class FakeSession:
    """Records requests and replays canned responses in order"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


def job(status, **extra):
    return make_response(payload=dict({'job_id': 'job-1', 'status': status}, **extra))


@pytest.fixture
def pages():
    return [
        AnnotatedPage(1, 'orofacial', 'Orofacial Exam', b'png-1'),
        AnnotatedPage(2, 'consents', 'Consents', b'png-2'),
    ]


class TestTransport:
    """Test URL building and error mapping"""

    def test_base_url_from_config(self):
        client = ExtractionClient(session=FakeSession())
        assert client.base_url == 'http://extractor.test'

    def test_trailing_slash_stripped(self):
        fake = FakeSession(make_response(payload={'status': 'healthy'}))
        client = ExtractionClient(base_url='http://api.local/', timeout=5, session=fake)

        health = client.check_health()

        method, url, kwargs = fake.calls[0]
        assert (method, url) == ('GET', 'http://api.local/api/health')
        assert kwargs['timeout'] == 5
        assert health.status == 'healthy'

    def test_error_detail_is_surfaced(self):
        fake = FakeSession(make_response(404, {'detail': 'Job not found'}))
        with pytest.raises(RemoteFailure) as excinfo:
            ExtractionClient(session=fake).get_job_status('missing')
        assert str(excinfo.value) == 'Job not found'
        assert excinfo.value.status_code == 404

    def test_error_without_detail_uses_default_message(self):
        fake = FakeSession(make_response(500, body=b'Internal Server Error'))
        with pytest.raises(RemoteFailure) as excinfo:
            ExtractionClient(session=fake).get_results('job-1')
        assert str(excinfo.value) == 'Failed to get results'

    def test_connection_error(self):
        fake = FakeSession(requests.ConnectionError('refused'))
        with pytest.raises(RemoteFailure, match='API health check failed'):
            ExtractionClient(session=fake).check_health()

    def test_invalid_json_body(self):
        fake = FakeSession(make_response(200, body=b'<html>'))
        with pytest.raises(RemoteFailure):
            ExtractionClient(session=fake).list_schemas()

    def test_close(self):
        fake = FakeSession()
        ExtractionClient(session=fake).close()
        assert fake.closed


class TestAnalyze:
    """Test image submission"""

    def test_multipart_upload(self, pages):
        fake = FakeSession(make_response(payload={'job_id': 'job-1', 'status': 'pending'}))

        response = ExtractionClient(session=fake).analyze_images(
            pages, name='Intake', schema_path='schemas/orofacial.json')

        method, url, kwargs = fake.calls[0]
        assert (method, url) == ('POST', 'http://extractor.test/api/analyze-images')
        assert kwargs['files'] == [
            ('files', ('Orofacial_Exam_page_1.png', b'png-1', 'image/png')),
            ('files', ('Consents_page_2.png', b'png-2', 'image/png')),
        ]
        assert json.loads(kwargs['data']['page_metadata']) == [
            {'originalPageNumber': 1, 'documentId': 'orofacial', 'documentName': 'Orofacial Exam'},
            {'originalPageNumber': 2, 'documentId': 'consents', 'documentName': 'Consents'},
        ]
        assert kwargs['data']['name'] == 'Intake'
        assert kwargs['data']['schema_path'] == 'schemas/orofacial.json'
        assert response.job_id == 'job-1'

    def test_no_pages(self):
        fake = FakeSession()
        with pytest.raises(ValidationFailure):
            ExtractionClient(session=fake).analyze_images([])
        assert fake.calls == []

    def test_save_annotated_pdfs(self):
        fake = FakeSession(make_response(payload={'success': True, 'savedFiles': ['a']}))
        docs = [AnnotatedDocument('orofacial', 'Orofacial Exam', b'%PDF')]

        saved = ExtractionClient(session=fake).save_annotated_pdfs(docs, job_id='job-1')

        _, url, kwargs = fake.calls[0]
        assert url.endswith('/api/save-annotated-pdfs')
        assert kwargs['files'] == [
            ('files', ('Orofacial_Exam_annotated.pdf', b'%PDF', 'application/pdf'))
        ]
        assert kwargs['data'] == {'job_id': 'job-1'}
        assert saved['success']


class TestPolling:
    """Test job status polling"""

    def test_polls_until_completed(self):
        fake = FakeSession(job('pending'), job('processing', progress=1, total_pages=2),
                           job('completed'))
        seen = []
        sleeps = []

        status = ExtractionClient(session=fake).poll_job_status(
            'job-1', on_progress=lambda s: seen.append(s.status),
            interval_ms=250, sleep=sleeps.append)

        assert status.succeeded
        assert seen == ['pending', 'processing', 'completed']
        assert sleeps == [0.25, 0.25]

    def test_failed_job_is_terminal(self):
        fake = FakeSession(job('failed', message='Model error'))
        status = ExtractionClient(session=fake).poll_job_status('job-1', sleep=lambda s: None)
        assert status.is_terminal
        assert not status.succeeded
        assert status.message == 'Model error'

    def test_timeout(self):
        fake = FakeSession(*[job('processing') for _ in range(3)])
        with pytest.raises(TimeoutFailure, match='Job timed out'):
            ExtractionClient(session=fake).poll_job_status(
                'job-1', max_attempts=3, sleep=lambda s: None)
        assert len(fake.calls) == 3

    def test_describe(self):
        status = JobStatus('job-1', 'processing', progress=2, total_pages=4,
                           percentage=50.0, current_stage='Extracting fields')
        assert status.describe() == 'Extracting fields - page 2 of 4 - 50%'


class TestResults:
    """Test result retrieval"""

    def test_get_results(self, extraction_payload):
        fake = FakeSession(make_response(payload=extraction_payload))

        result = ExtractionClient(session=fake).get_results('job-1')

        assert fake.calls[0][1] == 'http://extractor.test/api/results/job-1'
        assert result.form_name == 'Orofacial Exam'
        assert result.total_fields == 3
        assert result.pages[0].field_values['jaw_pain'].display_value() == 'YES'
        assert result.pages[0].field_values['pain_location'].display_value() == 'Left, Temple'
        assert result.pages[1].field_values == {}

    def test_page_results(self, extraction_payload):
        fake = FakeSession(make_response(payload=extraction_payload['pages'][0]))
        page = ExtractionClient(session=fake).get_page_results('job-1', 1)
        assert fake.calls[0][1].endswith('/api/results/job-1/page/1')
        assert page.annotation_groups[0].interpretation == 'Pain radiates to temple'

    def test_list_schemas(self):
        fake = FakeSession(make_response(payload={'schemas': [
            {'name': 'Orofacial', 'id': 'orofacial', 'path': 'schemas/orofacial.json',
             'total_pages': 3},
        ]}))
        schemas = ExtractionClient(session=fake).list_schemas()
        assert [s.id for s in schemas] == ['orofacial']
        assert schemas[0].total_pages == 3


class TestMalformedResponses:
    """Bodies that parse as JSON but lack required fields"""

    def test_analyze_without_job_id(self, pages):
        fake = FakeSession(make_response(payload={'status': 'pending'}))
        with pytest.raises(RemoteFailure, match='unexpected response'):
            ExtractionClient(session=fake).analyze_images(pages)

    def test_job_status_without_status(self):
        fake = FakeSession(make_response(payload={'job_id': 'job-1'}))
        with pytest.raises(RemoteFailure):
            ExtractionClient(session=fake).get_job_status('job-1')

    def test_schemas_not_an_object(self):
        fake = FakeSession(make_response(payload=['orofacial']))
        with pytest.raises(RemoteFailure):
            ExtractionClient(session=fake).list_schemas()


class TestAnalysisWorker:
    """The worker always reports back, whatever the backend sends"""

    @pytest.fixture
    def export(self, pages):
        result = ExportResult()
        result.submission_set['orofacial'] = pages[:1]
        return result

    def run_worker(self, client, export):
        worker = AnalysisWorker(client, export, generation=0)
        finished = []
        worker.finished.connect(lambda ok, msg: finished.append((ok, msg)))
        worker.run()
        return finished

    def test_missing_job_id_finishes_with_failure(self, qapp, export):
        client = ExtractionClient(session=FakeSession(make_response(payload={'status': 'pending'})))

        finished = self.run_worker(client, export)

        assert len(finished) == 1
        assert finished[0][0] is False
        assert 'unexpected response' in finished[0][1]

    def test_unexpected_error_finishes_with_failure(self, qapp, export):
        class BrokenClient:
            def analyze_images(self, pages, name=None, schema_path=None):
                raise RuntimeError('socket closed')

        finished = self.run_worker(BrokenClient(), export)

        assert finished == [(False, 'Error during analysis: socket closed')]

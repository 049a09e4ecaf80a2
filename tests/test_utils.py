"""
Configuration and Logging Tests
"""
import logging

from digital_ink.config import DevelopmentConfig, TestingConfig, get_config
from digital_ink.utils import LoggingConfig, get_app_data_dir, get_log_dir


class TestConfig:
    """Test environment selection"""

    def test_testing_environment(self):
        assert get_config('testing') is TestingConfig
        assert get_config('testing').POLL_INTERVAL_MS == 0

    def test_unknown_environment_falls_back(self):
        assert get_config('staging') is DevelopmentConfig


class TestLogging:
    """Test logging setup"""

    def test_setup_writes_log_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(LoggingConfig, '_initialized', False)
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level

        try:
            LoggingConfig.setup_logging(tmp_path / 'logs', level='WARNING')
            LoggingConfig.setup_logging(tmp_path / 'other')
            logging.getLogger('digital_ink.test').info("hello log")
            for handler in root.handlers:
                handler.flush()

            log_file = LoggingConfig.get_log_file_path()
            assert log_file == tmp_path / 'logs' / 'digital_ink.log'
            assert 'hello log' in log_file.read_text(encoding='utf-8')
            assert not (tmp_path / 'other').exists()
        finally:
            for handler in root.handlers[:]:
                if handler not in handlers:
                    root.removeHandler(handler)
                    handler.close()
            root.setLevel(level)


class TestAppDirectories:
    """Test per-user directories"""

    def test_log_dir_under_app_data(self, tmp_path, monkeypatch):
        monkeypatch.setenv('XDG_DATA_HOME', str(tmp_path))
        monkeypatch.setenv('APPDATA', str(tmp_path))
        monkeypatch.setattr('os.path.expanduser', lambda p: str(tmp_path))

        assert get_log_dir('InkTest').parent == get_app_data_dir('InkTest')
        assert get_log_dir('InkTest').is_dir()

import structlog

from pqr_seguimiento.infrastructure import logging_config
from pqr_seguimiento.infrastructure.logging_config import LOG_FILE_NAME, close_log_file, setup_logging


class TestSetupLogging:
    def teardown_method(self):
        close_log_file()
        structlog.reset_defaults()

    def test_writes_json_lines_to_file(self, tmp_path):
        setup_logging("INFO", log_dir=tmp_path)
        structlog.get_logger().info("caso_importado", sn="100")
        close_log_file()
        content = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
        assert '"event": "caso_importado"' in content
        assert '"sn": "100"' in content

    def test_reconfiguring_closes_previous_file(self, tmp_path):
        setup_logging("INFO", log_dir=tmp_path / "a")
        first = logging_config._log_file
        setup_logging("INFO", log_dir=tmp_path / "b")
        assert first.closed
        assert logging_config._log_file is not first
        assert not logging_config._log_file.closed

    def test_console_mode_releases_file(self, tmp_path):
        setup_logging("INFO", log_dir=tmp_path)
        handle = logging_config._log_file
        setup_logging("DEBUG")
        assert handle.closed
        assert logging_config._log_file is None

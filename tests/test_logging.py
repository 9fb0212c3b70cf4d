from __future__ import annotations

import logging

from schedule_sync import logging as app_logging


def test_configure_logging_writes_to_file_once(tmp_path, monkeypatch):
    monkeypatch.setattr(app_logging, "_INITIALIZED", False)
    root = logging.getLogger()
    before = list(root.handlers)
    log_file = tmp_path / "logs" / "schedule_sync.log"

    try:
        app_logging.configure_logging("debug", log_path=log_file)
        app_logging.configure_logging("debug", log_path=tmp_path / "other.log")

        added = [handler for handler in root.handlers if handler not in before]
        assert len(added) == 2
        logging.getLogger("schedule_sync.test").info("hello")
        for handler in added:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
        assert not (tmp_path / "other.log").exists()
    finally:
        for handler in [handler for handler in root.handlers if handler not in before]:
            root.removeHandler(handler)
            handler.close()

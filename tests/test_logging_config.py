import logging

from app.core.logging_config import CALENDAR_MUTATIONS_LOGGER_NAME, setup_logging


def test_mutations_go_to_their_own_file(tmp_path):
    setup_logging(log_dir=str(tmp_path), log_level="info")
    logging.getLogger(CALENDAR_MUTATIONS_LOGGER_NAME).info("delete class 3 ok")
    logging.getLogger("app.services.time_grid").info("general line")
    for h in logging.getLogger().handlers + logging.getLogger(CALENDAR_MUTATIONS_LOGGER_NAME).handlers:
        h.flush()

    mutations = (tmp_path / "calendar_mutations.log").read_text(encoding="utf-8")
    general = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert "delete class 3 ok" in mutations
    assert "delete class 3 ok" not in general
    assert "general line" in general
    assert "| INFO     | calendar.mutations |" in mutations

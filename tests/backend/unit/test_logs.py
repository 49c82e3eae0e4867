import logging

from teamsaver.backend.logs import configure_logging


def test_configure_logging_appends_timestamped_lines(tmp_path) -> None:
    log_file = tmp_path / "logs" / "TeamSaver.log"
    log_file.parent.mkdir()
    log_file.write_text("earlier line\n", encoding="utf-8")

    configure_logging(log_file=log_file, force=True)
    try:
        logging.getLogger("teamsaver.test").info("3 teams restored from data file")
        for handler in logging.getLogger().handlers:
            handler.flush()
    finally:
        configure_logging(force=True)

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "earlier line"
    assert lines[1].endswith("INFO [teamsaver.test] 3 teams restored from data file")
    assert lines[1][2] == ":" and lines[1][5] == ":"

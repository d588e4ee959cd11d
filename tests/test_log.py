import logging

from inkpress.log import ClickHandler, configure_logging


def test_configure_logging_installs_single_handler():
    logger = configure_logging()
    configure_logging(verbose=True)
    handlers = [h for h in logger.handlers if isinstance(h, ClickHandler)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG
    configure_logging()
    assert logger.level == logging.INFO


def test_records_are_echoed(capsys):
    configure_logging()
    logging.getLogger("inkpress.build").info("Built %d pages", 3)
    logging.getLogger("inkpress.render").warning("Failed to download style")
    captured = capsys.readouterr()
    assert "- Built 3 pages" in captured.out
    assert "- Failed to download style" in captured.err

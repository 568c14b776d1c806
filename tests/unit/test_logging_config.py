import io
import logging
import os
import tempfile
import unittest

from catalog_sync.logging_config import LOGGER_NAME, TqdmLoggingHandler, setup_logger


class TestSetupLogger(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        self.temp_dir.cleanup()

    def test_file_and_console_handlers(self):
        log_file = os.path.join(self.temp_dir.name, "logs", "run.log")
        logger = setup_logger("debug", log_file, True)

        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)
        self.assertEqual(
            sorted(type(handler).__name__ for handler in logger.handlers),
            ["FileHandler", "TqdmLoggingHandler"]
        )

        logging.getLogger("catalog_sync.sync_locales").info("Wrote fr/translation.json")
        for handler in logger.handlers:
            handler.flush()
        with open(log_file, 'r', encoding='utf-8') as f:
            self.assertIn("catalog_sync.sync_locales - Wrote fr/translation.json", f.read())

    def test_repeated_setup_does_not_stack_handlers(self):
        log_file = os.path.join(self.temp_dir.name, "run.log")
        setup_logger("INFO", log_file, True)
        logger = setup_logger("INFO", log_file, True)
        self.assertEqual(len(logger.handlers), 2)

    def test_no_file_logging(self):
        logger = setup_logger("NOT_A_LEVEL", None, False)
        self.assertEqual(logger.handlers, [])
        self.assertEqual(logger.level, logging.INFO)


class TestTqdmLoggingHandler(unittest.TestCase):
    def test_writes_formatted_record_to_stream(self):
        stream = io.StringIO()
        handler = TqdmLoggingHandler(stream=stream)
        handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
        record = logging.LogRecord("catalog_sync", logging.WARNING, __file__, 1, "Retrying chunk", None, None)

        handler.emit(record)

        self.assertEqual(stream.getvalue(), "WARNING Retrying chunk\n")


if __name__ == '__main__':
    unittest.main()

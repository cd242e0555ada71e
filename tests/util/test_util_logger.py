import logging
import unittest

from bucketsync.util.logger import ColouredFormatter, get_logger, setup_logging


class TestUtilLogger(unittest.TestCase):
    def tearDown(self) -> None:
        root = logging.getLogger("bucketsync")
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.setLevel(logging.NOTSET)

    def test_get_logger_namespaces_under_package(self) -> None:
        self.assertEqual(get_logger("bucketsync.sync.engine").name, "bucketsync.sync.engine")
        self.assertEqual(get_logger("cli").name, "bucketsync.cli")

    def test_get_logger_installs_no_handlers(self) -> None:
        log = get_logger("bucketsync.quiet")
        self.assertEqual(log.handlers, [])

    def test_setup_logging_levels(self) -> None:
        self.assertEqual(setup_logging().level, logging.INFO)
        self.assertEqual(setup_logging(verbose=True).level, logging.DEBUG)
        self.assertEqual(setup_logging(verbose=True, quiet=True).level, logging.WARNING)

    def test_setup_logging_adds_single_handler(self) -> None:
        setup_logging()
        root = setup_logging()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, ColouredFormatter)

    def test_formatter_prefixes_level(self) -> None:
        formatter = ColouredFormatter("%(message)s")
        record = logging.LogRecord("bucketsync", logging.WARNING, __file__, 1, "hello", None, None)
        text = formatter.format(record)
        self.assertIn("[WARNING]", text)
        self.assertTrue(text.endswith("hello"))


if __name__ == "__main__":
    unittest.main()

import json
import logging
import unittest


class TestLogging(unittest.TestCase):
    def test_configure_logging_sets_level(self):
        # Defer import to avoid side effects and ensure package is importable from source
        from siren_api.logging import configure_logging

        # Reset root logger handlers to ensure basicConfig applies
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)

        configure_logging(level=logging.DEBUG)
        root = logging.getLogger()
        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(logging.getLogger('siren_api.design.architect').level, logging.DEBUG)

    def test_structured_formatter_includes_design_context(self):
        from siren_api.logging import StructuredFormatter

        record = logging.LogRecord(
            'siren_api.design.architect', logging.INFO, __file__, 10,
            'domain_model_generated', None, None,
        )
        record.document_id = 'doc-1'
        record.phase = 'analysis'

        entry = json.loads(StructuredFormatter().format(record))

        self.assertEqual(entry['message'], 'domain_model_generated')
        self.assertEqual(entry['document_id'], 'doc-1')
        self.assertEqual(entry['phase'], 'analysis')
        self.assertNotIn('user_id', entry)


if __name__ == "__main__":
    unittest.main()

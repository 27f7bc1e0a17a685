# tests/test_config.py
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from minicasino.application.settings import API_URL_ENV, load_client_config
from minicasino.infrastructure.config.loaders.yaml_loader import (
    FileNotFoundConfigError,
    SchemaValidationError,
    YamlParseError,
)
from minicasino.infrastructure.http.endpoints import DEFAULT_ENDPOINTS, Endpoint, endpoints_from_config


class TestClientConfig(unittest.TestCase):
    """Test cases for loading and validating the client configuration."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, content):
        path = os.path.join(self.tmpdir.name, "client.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_packaged_defaults(self):
        config = load_client_config(environ={})

        self.assertEqual(config["api"]["base_url"], "http://localhost:5000/api")
        self.assertEqual(config["games"]["round_timeout"], 15)
        self.assertGreater(config["games"]["slot"]["reveal_floor"],
                           config["games"]["prediction"]["reveal_floor"])
        self.assertEqual(config["history"]["page_size"], 10)
        self.assertTrue(config["games"]["slot"]["symbols"])

    def test_partial_file_is_completed_from_schema(self):
        path = self.write("games:\n  prediction:\n    reveal_floor: 0.5\n")

        config = load_client_config(path, environ={})

        self.assertEqual(config["games"]["prediction"]["reveal_floor"], 0.5)
        self.assertEqual(config["games"]["slot"]["reveal_floor"], 3.0)
        self.assertEqual(config["storage"]["path"], "~/.minicasino/session.json")
        self.assertEqual(config["logging"]["level"], "WARNING")

    def test_empty_file_yields_defaults(self):
        config = load_client_config(self.write(""), environ={})
        self.assertEqual(config["api"]["timeout"], 10)

    def test_invalid_value_is_rejected(self):
        path = self.write("history:\n  page_size: 0\n")

        with self.assertRaises(SchemaValidationError) as ctx:
            load_client_config(path, environ={})
        self.assertIn("history.page_size", ctx.exception.message)

    def test_unknown_endpoint_method_is_rejected(self):
        path = self.write("api:\n  endpoints:\n    login: {method: FETCH, path: /x}\n")
        with self.assertRaises(SchemaValidationError):
            load_client_config(path, environ={})

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundConfigError):
            load_client_config(os.path.join(self.tmpdir.name, "nope.yaml"), environ={})

    def test_unparsable_file(self):
        with self.assertRaises(YamlParseError):
            load_client_config(self.write("api: [unclosed\n"), environ={})

    def test_environment_overrides_base_url(self):
        config = load_client_config(environ={API_URL_ENV: "https://casino.example/api"})
        self.assertEqual(config["api"]["base_url"], "https://casino.example/api")


class TestEndpoints(unittest.TestCase):

    def test_defaults(self):
        endpoints = endpoints_from_config(None)
        self.assertEqual(endpoints, DEFAULT_ENDPOINTS)
        self.assertEqual(str(endpoints["prediction_bet"]), "POST /games/doble")

    def test_overrides(self):
        endpoints = endpoints_from_config({
            "verify": {"method": "post", "path": "/auth/me"},
            "history": "/games/recent",
        })

        self.assertEqual(endpoints["verify"], Endpoint("POST", "/auth/me"))
        self.assertEqual(endpoints["history"], Endpoint("GET", "/games/recent"))
        self.assertEqual(endpoints["login"], DEFAULT_ENDPOINTS["login"])


if __name__ == "__main__":
    unittest.main()

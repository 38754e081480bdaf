import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from scripts.notifier.state.heartbeat import write_heartbeat
from scripts.notifier.state.paths import APP_DIR_NAME, get_data_dir


class TestHeartbeat(unittest.TestCase):
    """Test cases for the heartbeat writer and data directory."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    @patch('scripts.notifier.state.heartbeat.time.time', return_value=1700000000.7)
    def test_write_heartbeat(self, mock_time):
        """Test the heartbeat holds timestamp, status and notified count."""
        path = self.root / "heartbeat.json"

        write_heartbeat(True, 3, path=path)

        with open(path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), {"ts": 1700000000, "ok": True, "new": 3})

    def test_write_heartbeat_never_raises(self):
        """Test an unwritable location is ignored."""
        write_heartbeat(False, 0, path=self.root / "missing" / "heartbeat.json")

    def test_write_heartbeat_default_location(self):
        """Test the default file lives in the data dir."""
        with patch('scripts.notifier.state.heartbeat.get_data_dir', return_value=self.root):
            write_heartbeat(False, 0)

        self.assertTrue((self.root / "heartbeat.json").exists())

    @patch('scripts.notifier.state.paths.sys.platform', 'linux')
    def test_get_data_dir_xdg(self):
        """Test XDG_DATA_HOME is honoured and the directory is created."""
        with patch.dict(os.environ, {"XDG_DATA_HOME": str(self.root)}):
            data_dir = get_data_dir()

        self.assertEqual(data_dir, self.root / APP_DIR_NAME)
        self.assertTrue(data_dir.is_dir())

    @patch('scripts.notifier.state.paths.sys.platform', 'win32')
    def test_get_data_dir_windows(self):
        """Test %APPDATA% is used on Windows."""
        with patch.dict(os.environ, {"APPDATA": str(self.root)}):
            self.assertEqual(get_data_dir(create=False), self.root / APP_DIR_NAME)


if __name__ == '__main__':
    unittest.main()

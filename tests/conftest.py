# tests/conftest.py
"""Point the app at a throwaway SQLite DB and keep inference offline before anything imports crowdvision."""

import os
import sys
import tempfile

_tmp = tempfile.mkdtemp(prefix="crowdvision-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["LOG_DIR"] = _tmp
os.environ["INFERENCE_API_KEY"] = ""
os.environ["API_KEY"] = ""

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

"""Vercel serverless function entry point."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("FOODCHECK_USE_MOCK", "false")

from app.main import app

handler = app

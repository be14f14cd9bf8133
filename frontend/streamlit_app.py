"""
Streamlit entry point.

    streamlit run frontend/streamlit_app.py

Renders the course catalog (see frontend/ui.py) against the FastAPI
backend, which must be running separately: python app/app.py
"""

import sys
from pathlib import Path

# Streamlit puts only this directory on sys.path; the packages live one level up
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend.ui import main

main()

"""
Quick launcher for the Streamlit sentiment dashboard
"""
import os
import subprocess
import sys

from config.settings import settings


def main():
    """Launch Streamlit dashboard from the project root"""
    script_dir = os.path.dirname(os.path.abspath(__file__))
    os.chdir(script_dir)
    settings.ensure_directories()

    if not settings.GEMINI_API_KEY:
        print("Warning: GEMINI_API_KEY is not set. Add it to .env before analyzing text.")

    print("Starting sentiment dashboard...")
    print("Dashboard will open in your browser at http://localhost:8501")
    return subprocess.run([sys.executable, "-m", "streamlit", "run", "streamlit_app.py"]).returncode


if __name__ == "__main__":
    sys.exit(main())

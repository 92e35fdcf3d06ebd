"""Run script with proper environment loading"""
import os
import sys
from pathlib import Path

# Add backend directory to path for imports
BACKEND_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(BACKEND_DIR))

# Load environment variables
from dotenv import load_dotenv

env_file = BACKEND_DIR.parent / ".env"
if env_file.exists():
    print(f"Loading environment variables from {env_file}...")
    load_dotenv(env_file, override=False)

os.chdir(BACKEND_DIR)


def main():
    import uvicorn
    from rigidity.core.config import get_settings

    settings = get_settings()
    print("Starting descriptive-rigidity server...")
    print(f"OPENAI_API_KEY is set: {'Yes' if settings.openai_api_key else 'No'}")
    print(f"Deformation mode: {settings.deformation_mode.value}")

    # Import app directly instead of using string to avoid path issues
    from main import app

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()

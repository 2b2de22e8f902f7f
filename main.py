"""Main entry point for the Case Triage Engine API server."""

import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file BEFORE importing engine modules
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from triage_api import create_app  # noqa: E402

# Load config path from environment or use default
config_path = os.getenv("TRIAGE_CONFIG_PATH", "configs/triage.yaml")

app = create_app(config_path=config_path)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )

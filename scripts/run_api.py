"""Launch the pricing API under uvicorn against the configured data directory."""
import logging
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

from cabinet_pricing.config.logging_config import configure_logging  # noqa: E402
from cabinet_pricing.config.settings import get_settings  # noqa: E402

logger = logging.getLogger(__name__)


def build_env() -> dict:
    """Child environment with src importable ahead of anything inherited."""
    env = os.environ.copy()
    paths = [str(SRC_PATH)]
    if env.get("PYTHONPATH"):
        paths.append(env["PYTHONPATH"])
    env["PYTHONPATH"] = os.pathsep.join(paths)
    return env


def main():
    configure_logging()
    settings = get_settings()
    env = build_env()
    host = env.get("CABINET_PRICING_HOST", "0.0.0.0")
    port = env.get("CABINET_PRICING_PORT", "8000")

    logger.info("Serving pricing API on %s:%s (data dir %s)", host, port, settings.data_dir)
    command = [
        sys.executable, "-m", "uvicorn", "cabinet_pricing.api.main:app",
        "--host", host, "--port", port, "--reload",
        "--log-level", settings.log_level.lower(),
    ]
    try:
        completed = subprocess.run(command, cwd=PROJECT_ROOT, env=env)
    except KeyboardInterrupt:
        logger.info("Pricing API stopped")
        return 0
    if completed.returncode:
        logger.error("uvicorn exited with status %d", completed.returncode)
    return completed.returncode


if __name__ == "__main__":
    sys.exit(main())

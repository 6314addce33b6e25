import os

import uvicorn

from croprisk.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="croprisk")
    logger.info("Starting crop risk server", extra={"rule_workers": settings.rule_workers})

    uvicorn.run(
        "croprisk.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )

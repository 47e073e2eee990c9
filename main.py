import uvicorn
from dotenv import load_dotenv

from hashseries.core.config import get_settings

load_dotenv()


def main():
    settings = get_settings()
    uvicorn.run(
        "hashseries.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
